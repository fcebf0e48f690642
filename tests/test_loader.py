"""Tests for featuresynth.loader and featuresynth.lib.validate."""

import json

import pytest

from featuresynth.lib.validate import DocumentError, read_document, validate
from featuresynth.loader import find_epic, load_document, parse_document


DOCUMENT = {
    "epics": [
        {
            "id": "EPIC-1",
            "Epic_title": "User Management",
            "userStories": [
                {
                    "name": "Register",
                    "tasks": [
                        {"title": "Registration Form", "acceptanceCriteria": "Valid email required"},
                        {"name": "Handle Form Submission", "acceptance_criteria": ["Saves", "Confirms"]},
                    ],
                },
                {"title": "Nothing yet"},
            ],
        },
        {"title": "Loans", "stories": [{"title": "Apply", "tasks": None}]},
    ]
}


class TestParseDocument:

    def test_normalizes_naming_variants(self):
        epics = parse_document(DOCUMENT)

        assert [e.title for e in epics] == ["User Management", "Loans"]
        story = epics[0].user_stories[0]
        assert story.title == "Register"
        assert [t.title for t in story.tasks] == ["Registration Form", "Handle Form Submission"]
        assert story.tasks[0].acceptance_criteria == ("Valid email required",)
        assert story.tasks[1].acceptance_criteria == ("Saves", "Confirms")

    def test_bare_list(self):
        epics = parse_document(DOCUMENT["epics"])
        assert len(epics) == 2

    def test_ids_derived_and_unique(self):
        epics = parse_document([{"title": "Same"}, {"title": "Same"}, {}])
        assert [e.id for e in epics] == ["same", "same-2", "epic-3"]

    def test_missing_tasks_become_empty(self):
        epics = parse_document(DOCUMENT)
        assert epics[0].user_stories[1].tasks == []
        assert epics[1].user_stories[0].tasks == []

    def test_slug(self):
        epics = parse_document(DOCUMENT)
        assert epics[0].slug == "epic-1"

    def test_invalid_shape(self):
        with pytest.raises(DocumentError):
            parse_document({"epics": "nope"})
        with pytest.raises(DocumentError):
            parse_document({"stories": []})
        with pytest.raises(DocumentError):
            parse_document([{"userStories": [{"tasks": ["not an object"]}]}])


class TestFindEpic:

    def test_find_by_slug(self):
        epics = parse_document(DOCUMENT)
        assert find_epic(epics, "EPIC-1").title == "User Management"
        assert find_epic(epics, "loans").title == "Loans"
        assert find_epic(epics, "missing") is None


class TestFiles:

    def test_load_json(self, tmp_path):
        path = tmp_path / "epics.json"
        path.write_text(json.dumps(DOCUMENT))
        assert len(load_document(path)) == 2

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "epics.yaml"
        path.write_text(
            "epics:\n"
            "  - title: Boards\n"
            "    user_stories:\n"
            "      - title: Create\n"
            "        tasks:\n"
            "          - title: Create New Board\n"
        )
        epics = load_document(path)
        assert epics[0].user_stories[0].tasks[0].title == "Create New Board"

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentError, match="File not found"):
            read_document(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(DocumentError, match="Invalid JSON"):
            load_document(path)

    def test_validate_reports_path(self):
        with pytest.raises(DocumentError) as exc_info:
            validate({"epics": [{"title": 5}]})
        assert exc_info.value.schema_name == "document"
