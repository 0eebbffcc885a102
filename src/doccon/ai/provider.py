"""AI capabilities consumed by the consolidation engine.

Each capability has a single operation with its own request and response
type. Consumers receive capabilities at construction and treat ``None`` as
"no AI available", which always has a deterministic fallback.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ClusteringRequest:
    prompt: str
    document_count: int


@dataclass(frozen=True)
class ClusteringResponse:
    text: str


@dataclass(frozen=True)
class RelatedFilesRequest:
    prompt: str
    candidate_count: int


@dataclass(frozen=True)
class RelatedFilesResponse:
    text: str


class TopicSuggester(ABC):
    """Groups documents into topic clusters."""

    @abstractmethod
    def suggest_topics(self, request: ClusteringRequest) -> ClusteringResponse:
        """Return free text containing one JSON object describing clusters."""


class RelatedFileJudge(ABC):
    """Decides which non-markdown files are documentation."""

    @abstractmethod
    def judge_related(self, request: RelatedFilesRequest) -> RelatedFilesResponse:
        """Return free text containing one JSON object with related indices."""


class AnthropicProvider(TopicSuggester, RelatedFileJudge):
    """Both capabilities backed by the Claude API."""

    def __init__(self, api_key: str, model: str, max_tokens: int = 4000, timeout: float = 60):
        import anthropic
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout)
        self.model = model
        self.max_tokens = max_tokens

    def _complete(self, prompt: str) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text

    def suggest_topics(self, request: ClusteringRequest) -> ClusteringResponse:
        return ClusteringResponse(text=self._complete(request.prompt))

    def judge_related(self, request: RelatedFilesRequest) -> RelatedFilesResponse:
        return RelatedFilesResponse(text=self._complete(request.prompt))


def get_ai_provider(config: dict[str, Any]) -> AnthropicProvider | None:
    """Factory: return the configured provider, or None without an API key."""
    ai_cfg = config.get("ai", {})
    api_key = ai_cfg.get("api_key")
    if not api_key:
        return None
    return AnthropicProvider(
        api_key=api_key,
        model=ai_cfg.get("model", "claude-sonnet-4-20250514"),
        max_tokens=ai_cfg.get("max_tokens", 4000),
        timeout=ai_cfg.get("timeout", 60),
    )


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the first balanced ``{...}`` span in free text.

    Braces inside JSON strings are ignored. Raises ValueError if no balanced
    object is found or it is not valid JSON.
    """
    import json

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for pos in range(start, len(text)):
            ch = text[pos]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    span = text[start:pos + 1]
                    try:
                        data = json.loads(span)
                    except json.JSONDecodeError:
                        break
                    if isinstance(data, dict):
                        return data
                    break
        start = text.find("{", start + 1)
    raise ValueError("No JSON object found in response")


def is_list_index(value: Any, count: int) -> bool:
    """True for a 1-based int index into a list of count items. Booleans are rejected."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= count
