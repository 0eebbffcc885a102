"""Tests for the README consolidation section."""

from datetime import date

from doccon.maintenance.readme import SECTION_END, SECTION_START, update_readme

TODAY = date(2024, 5, 10)


def test_creates_readme_when_missing(tmp_path):
    out = tmp_path / "CONSOLIDATED_NOTES.md"
    assert update_readme(tmp_path, [out], today=TODAY)

    content = (tmp_path / "README.md").read_text()
    assert content.startswith(f"# {tmp_path.name}")
    assert SECTION_START in content and SECTION_END in content
    assert "- [CONSOLIDATED_NOTES](CONSOLIDATED_NOTES.md)" in content
    assert "1 summary file." in content


def test_update_is_idempotent(tmp_path):
    (tmp_path / "README.md").write_text("# Project\n\nHand-written intro.\n")
    files = [tmp_path / "CONSOLIDATED_A.md", tmp_path / "CONSOLIDATED_B.md"]

    assert update_readme(tmp_path, files, today=TODAY)
    first = (tmp_path / "README.md").read_text()
    assert not update_readme(tmp_path, files, today=TODAY)
    assert (tmp_path / "README.md").read_text() == first
    assert first.startswith("# Project\n\nHand-written intro.\n")
    assert first.count(SECTION_START) == 1


def test_section_replaced_in_place(tmp_path):
    (tmp_path / "README.md").write_text("# Project\n")
    update_readme(tmp_path, [tmp_path / "CONSOLIDATED_A.md"], today=TODAY)
    readme = tmp_path / "README.md"
    readme.write_text(readme.read_text() + "\n## Footer\n")

    update_readme(tmp_path, [tmp_path / "CONSOLIDATED_B.md"], archive_dir="documents", today=TODAY)
    content = readme.read_text()
    assert content.count(SECTION_START) == 1
    assert "CONSOLIDATED_A" not in content
    assert "CONSOLIDATED_B.md" in content
    assert "[`documents/`](documents/)" in content
    assert content.rstrip().endswith("## Footer")
