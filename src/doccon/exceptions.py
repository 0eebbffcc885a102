"""Exception types raised by the consolidation engine."""


class DocconError(Exception):
    """Base class for doccon errors."""


class ScanError(DocconError):
    """A file could not be read during scanning."""


class AIClusteringFailure(DocconError):
    """The AI capability failed or returned an unusable response."""


class PlanExecutionError(DocconError):
    """A consolidation plan could not be written."""


class BackupIntegrityError(DocconError):
    """A backup could not be created or confirmed before a destructive step."""
