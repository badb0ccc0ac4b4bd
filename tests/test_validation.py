from types import SimpleNamespace

import pytest

from feedbacts.utils.validation import (
    format_name,
    is_valid_email,
    sanitize_input,
    validate_answers,
    validate_form_data,
    validate_password,
    validate_question,
    validate_user_data,
)


def _question(id, type, required=False, options=(), min_value=None, max_value=None):
    return SimpleNamespace(
        id=id,
        question_type=type,
        required=required,
        options=[SimpleNamespace(option_text=o) for o in options],
        min_value=min_value,
        max_value=max_value,
    )


@pytest.mark.parametrize("email,ok", [
    ("juan@school.edu", True),
    ("juan@school", False),
    ("juan school@x.edu", False),
    ("", False),
    (None, False),
])
def test_is_valid_email(email, ok):
    assert is_valid_email(email) is ok


def test_validate_password_reports_first_broken_rule():
    assert validate_password("short") == "Password must be at least 8 characters long"
    assert validate_password("alllowercase1!") == "Password must contain at least one uppercase letter"
    assert validate_password("NoDigits!!") == "Password must contain at least one number"
    assert validate_password("NoSpecial123") == "Password must contain at least one special character"
    assert validate_password("Secret#123") is None


def test_sanitize_and_format_name():
    assert sanitize_input("  <b>Juan</b> ") == "bJuan/b"
    assert sanitize_input(5) == 5
    assert format_name("jUAN dela cruz") == "Juan Dela Cruz"


def test_validate_user_data_collects_errors():
    errors = validate_user_data("bad", "J", "weak", "wizard")
    assert "Valid email is required" in errors
    assert "Full name must be at least 2 characters long" in errors
    assert any(e.startswith("Invalid role") for e in errors)
    assert validate_user_data("juan@school.edu", "Juan", "Secret#123", "student") == []


def test_validate_form_data():
    assert validate_form_data("  ab ", "", None) == [
        "Title must be at least 3 characters long",
        "Category is required",
        "Target audience is required",
    ]
    assert validate_form_data("Survey", "General", "Students") == []


def test_validate_question_rules():
    assert validate_question({"question": "Pick", "type": "checkbox", "options": ["only"]}, 0) == [
        "Question 1: Choice-based questions must have at least 2 options"
    ]
    assert validate_question({"question": "Rate", "type": "rating", "min": 5, "max": 5}, 2) == [
        "Question 3: Rating min must be less than max"
    ]
    assert validate_question({"question": "Rate", "type": "linear-scale"}) == []
    errors = validate_question({"question": "x", "type": "essay"})
    assert len(errors) == 2


def test_validate_answers_accepts_valid_map():
    questions = [
        _question(1, "rating", required=True, min_value=1, max_value=5),
        _question(2, "multiple-choice", required=True, options=["A", "B"]),
        _question(3, "checkbox", options=["X", "Y", "Z"]),
        _question(4, "textarea"),
    ]
    assert validate_answers(questions, {"1": 4, "2": "A", "3": ["X", "Z"], "4": "Great"}) == []
    # optional questions may be left out
    assert validate_answers(questions, {"1": 1, "2": "B"}) == []


def test_validate_answers_rejects_bad_values():
    questions = [
        _question(1, "rating", required=True, min_value=1, max_value=5),
        _question(2, "dropdown", options=["A", "B"]),
        _question(3, "checkbox", options=["X", "Y"]),
    ]
    errors = validate_answers(questions, {"1": 9, "2": "C", "3": "X", "99": "?"})
    assert "Unknown question id 99" in errors
    assert "Question 1 must be between 1 and 5" in errors
    assert "Question 2 answer is not one of the options" in errors
    assert "Question 3 answers must be a list of the options" in errors


def test_validate_answers_required_and_types():
    questions = [_question(1, "rating", required=True), _question(2, "text", required=True)]
    errors = validate_answers(questions, {"2": "  "})
    assert errors == ["Question 1 is required", "Question 2 is required"]
    assert validate_answers(questions, {"1": True, "2": "ok"}) == ["Question 1 expects a whole number"]
    assert validate_answers(questions, {"1": 2.5, "2": "ok"}) == ["Question 1 expects a whole number"]


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_validate_answers_rejects_non_finite_numbers(value):
    questions = [_question(1, "rating", required=True, min_value=1, max_value=5)]
    assert validate_answers(questions, {"1": value}) == ["Question 1 expects a whole number"]
