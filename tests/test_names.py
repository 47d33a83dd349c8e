import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from weirdo_builder.services import names


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("  Star   Rats! ", "Star Rats"),
        ("javascript:Raiders", "Raiders"),
        ("onclick=Raiders", "Raiders"),
        ("Void-Born", "Void-Born"),
        (None, ""),
        (42, ""),
    ],
)
def test_sanitize_name(raw, expected):
    assert names.sanitize_name(raw) == expected


def test_sanitize_name_truncates():
    assert len(names.sanitize_name("x" * 80)) == names.NAME_MAX_LENGTH


def test_unique_name_appends_version_suffix():
    assert names.unique_name("Crew", []) == "Crew"
    assert names.unique_name("Crew", ["crew"]) == "Crew v2"
    assert names.unique_name("Crew", ["Crew", "CREW V2"]) == "Crew v3"


def test_reserved_words():
    assert names.is_reserved("Admin")
    assert names.is_reserved("test squad")
    assert not names.is_reserved("Testers")


def test_validate_name_reports_conflict_with_suggestions():
    result = names.validate_name("Crew", ["CREW"])

    assert result.valid is False
    assert result.available is False
    assert "Name is already taken" in result.errors
    assert result.suggestions == ["Crew 1", "Crew 2", "Crew 3"]


def test_validate_name_rejects_empty_after_sanitizing():
    result = names.validate_name("<>", [])

    assert result.to_dict() == {
        "valid": False,
        "available": False,
        "sanitized": "",
        "errors": ["Name cannot be empty"],
        "suggestions": ["Provide a name with valid characters"],
    }


def test_validate_name_flags_length_and_reserved_words():
    result = names.validate_name("system " + "a" * 60, [])

    assert result.valid is False
    assert result.errors == [
        "Name must be 50 characters or less",
        "Name uses reserved words",
    ]


def test_suggestions_skip_taken_names():
    suggestions = names.suggest_names("Crew", ["Crew 1", "Crew 2"])
    assert suggestions == ["Crew 3", "Elite Crew", "Advanced Crew"]
    assert names.suggest_names("", []) == names.FALLBACK_SUGGESTIONS
