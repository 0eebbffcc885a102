"""Tests for topic clustering and AI response parsing."""

from datetime import datetime, timedelta

import pytest

from doccon.ai.provider import ClusteringResponse, TopicSuggester, extract_json_object, is_list_index
from doccon.clustering.topics import TopicClusterer
from doccon.models import ClusterStrategy


class FakeSuggester(TopicSuggester):
    def __init__(self, text):
        self.text = text
        self.requests = []

    def suggest_topics(self, request):
        self.requests.append(request)
        return ClusteringResponse(text=self.text)


class BrokenSuggester(TopicSuggester):
    def suggest_topics(self, request):
        raise RuntimeError("connection reset")


def _docs(make_doc):
    return [
        make_doc("# Project\n", "README.md"),
        make_doc("# Setup\n\nInstall things.\n", "guides/setup.md"),
        make_doc("# Deploy\n\nShip things.\n", "guides/deploy.md"),
    ]


def test_fallback_groups_by_top_level_directory(make_doc):
    clusters = TopicClusterer().cluster_by_topic(_docs(make_doc))

    assert [c.name for c in clusters] == ["Root", "Guides"]
    root, guides = clusters
    assert [d.name for d in root.documents] == ["README.md"]
    assert root.suggested_filename == "ROOT.md"
    assert [d.name for d in guides.documents] == ["setup.md", "deploy.md"]
    assert guides.suggested_filename == "GUIDES.md"
    assert guides.description == "Files from guides directory"
    assert all(c.strategy == ClusterStrategy.MERGE for c in clusters)


def test_empty_input():
    assert TopicClusterer(FakeSuggester("{}")).cluster_by_topic([]) == []


def test_ai_clusters_parsed_from_prose(make_doc):
    text = (
        "Sure! Here is the grouping:\n"
        '{"clusters": ['
        '{"name": "Getting Started", "description": "setup docs", "fileIndices": [2, 3, 99],'
        ' "suggestedFilename": "GETTING_STARTED", "consolidationStrategy": "summarize", "reasoning": "same area"},'
        '{"name": "Ghost", "fileIndices": [42]}'
        "]}\nLet me know if you need more."
    )
    suggester = FakeSuggester(text)
    docs = _docs(make_doc)
    clusters = TopicClusterer(suggester).cluster_by_topic(docs)

    assert len(clusters) == 1
    cluster = clusters[0]
    assert cluster.name == "Getting Started"
    assert [d.name for d in cluster.documents] == ["setup.md", "deploy.md"]
    assert cluster.suggested_filename == "GETTING_STARTED.md"
    assert cluster.strategy == ClusterStrategy.SUMMARIZE
    assert cluster.reasoning == "same area"

    request = suggester.requests[0]
    assert request.document_count == 3
    assert "setup.md" in request.prompt
    assert "Consolidate 3 files" in request.prompt


def test_unknown_strategy_and_missing_filename(make_doc):
    text = '{"clusters": [{"name": "API Reference", "fileIndices": [1], "consolidationStrategy": "shred"}]}'
    clusters = TopicClusterer(FakeSuggester(text)).cluster_by_topic(_docs(make_doc))
    assert clusters[0].strategy == ClusterStrategy.MERGE
    assert clusters[0].suggested_filename == "API_REFERENCE.md"


def test_link_only_strategy_is_kept(make_doc):
    text = '{"clusters": [{"name": "Misc", "fileIndices": [1], "consolidationStrategy": "link-only"}]}'
    clusters = TopicClusterer(FakeSuggester(text)).cluster_by_topic(_docs(make_doc))
    assert clusters[0].strategy == ClusterStrategy.LINK_ONLY


def test_boolean_indices_are_not_positions(make_doc):
    text = '{"clusters": [{"name": "Setup", "fileIndices": [true, 2, false]}]}'
    clusters = TopicClusterer(FakeSuggester(text)).cluster_by_topic(_docs(make_doc))
    assert [d.name for d in clusters[0].documents] == ["setup.md"]


@pytest.mark.parametrize("text", [
    '{"clusters": [{"name": "Ghost", "fileIndices": [true]}]}',
    "I could not decide.",
    '{"clusters": "nope"}',
    '{"clusters": [{"name": "Ghost", "fileIndices": [0, 7]}]}',
])
def test_unusable_response_falls_back(make_doc, text):
    clusters = TopicClusterer(FakeSuggester(text)).cluster_by_topic(_docs(make_doc))
    assert [c.name for c in clusters] == ["Root", "Guides"]


def test_failing_suggester_falls_back(make_doc):
    clusters = TopicClusterer(BrokenSuggester()).cluster_by_topic(_docs(make_doc))
    assert [c.name for c in clusters] == ["Root", "Guides"]


def test_format_age():
    now = datetime(2024, 5, 10)
    clusterer = TopicClusterer(now=now)
    assert clusterer.format_age(now - timedelta(days=2)) == "2 days"
    assert clusterer.format_age(now - timedelta(days=15)) == "2 weeks"
    assert clusterer.format_age(now - timedelta(days=95)) == "3 months"
    assert clusterer.format_age(now - timedelta(days=800)) == "2 years"


def test_extract_json_object_ignores_braces_in_strings():
    assert extract_json_object('noise {"a": "}{", "b": {"c": 1}} trailing }') == {"a": "}{", "b": {"c": 1}}


def test_extract_json_object_skips_invalid_spans():
    assert extract_json_object('{not json} then {"ok": true}') == {"ok": True}


def test_extract_json_object_raises_without_object():
    with pytest.raises(ValueError):
        extract_json_object("no braces here")


def test_is_list_index():
    assert is_list_index(1, 3)
    assert is_list_index(3, 3)
    assert not is_list_index(0, 3)
    assert not is_list_index(4, 3)
    assert not is_list_index(True, 3)
    assert not is_list_index("2", 3)
