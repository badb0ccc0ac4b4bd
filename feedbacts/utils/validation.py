"""Field-level checks shared by the auth, user and form services.

Every validator returns a list of human-readable error messages; an empty
list means the input is valid. Callers decide how to surface them.
"""
import math
import re
from typing import Any, Dict, List, Optional

from feedbacts.models.form import QUESTION_TYPES, CHOICE_TYPES, SCALE_TYPES

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SPECIAL_CHARS_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")
VALID_ROLES = ("student", "instructor", "alumni", "employer", "admin")

DEFAULT_SCALE_MIN = 1
DEFAULT_SCALE_MAX = 5


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and bool(EMAIL_RE.match(email))


def validate_password(password: Optional[str]) -> Optional[str]:
    """Return the first complexity rule the password breaks, or None."""
    password = password or ""
    if len(password) < 8:
        return "Password must be at least 8 characters long"
    if not re.search(r"[A-Z]", password):
        return "Password must contain at least one uppercase letter"
    if not re.search(r"[a-z]", password):
        return "Password must contain at least one lowercase letter"
    if not re.search(r"\d", password):
        return "Password must contain at least one number"
    if not SPECIAL_CHARS_RE.search(password):
        return "Password must contain at least one special character"
    return None


def sanitize_input(value):
    if not isinstance(value, str):
        return value
    return value.strip().replace("<", "").replace(">", "")


def format_name(name: str) -> str:
    """'jUAN dela cruz' -> 'Juan Dela Cruz'"""
    return " ".join(word[:1].upper() + word[1:] for word in name.lower().split(" "))


def validate_user_data(email: Optional[str], full_name: Optional[str], password: Optional[str], role: Optional[str]) -> List[str]:
    errors = []
    if not is_valid_email(email):
        errors.append("Valid email is required")
    if not full_name or len(full_name.strip()) < 2:
        errors.append("Full name must be at least 2 characters long")
    if not password:
        errors.append("Password is required")
    else:
        password_error = validate_password(password)
        if password_error:
            errors.append(password_error)
    if role not in VALID_ROLES:
        errors.append(f"Invalid role. Must be one of: {', '.join(VALID_ROLES)}")
    return errors


def validate_form_data(title: Optional[str], category: Optional[str], target_audience: Optional[str]) -> List[str]:
    errors = []
    if not title or len(title.strip()) < 3:
        errors.append("Title must be at least 3 characters long")
    if not category:
        errors.append("Category is required")
    if not target_audience:
        errors.append("Target audience is required")
    return errors


def validate_question(question: Dict[str, Any], index: Optional[int] = None) -> List[str]:
    """Check one question payload: text, type, options and scale bounds."""
    prefix = f"Question {index + 1}: " if index is not None else ""
    errors = []

    text = question.get("question") or ""
    if len(text.strip()) < 3:
        errors.append(f"{prefix}Question text must be at least 3 characters long")

    qtype = question.get("type")
    if qtype not in QUESTION_TYPES:
        errors.append(f"{prefix}Invalid question type. Must be one of: {', '.join(QUESTION_TYPES)}")

    if qtype in CHOICE_TYPES:
        options = [o for o in (question.get("options") or []) if str(o).strip()]
        if len(options) < 2:
            errors.append(f"{prefix}Choice-based questions must have at least 2 options")

    if qtype in SCALE_TYPES:
        low = question.get("min")
        high = question.get("max")
        low = DEFAULT_SCALE_MIN if low is None else low
        high = DEFAULT_SCALE_MAX if high is None else high
        if low >= high:
            errors.append(f"{prefix}Rating min must be less than max")

    return errors


def _is_blank(value) -> bool:
    return value is None or value == "" or value == [] or (isinstance(value, str) and not value.strip())


def validate_answers(questions, answers: Dict[str, Any]) -> List[str]:
    """Check an answer map against the live questions of a form.

    `questions` are Question rows; `answers` is keyed by question id (as
    sent over JSON, so keys are strings). Unknown ids, missing required
    answers and values that do not fit the question type are reported.
    """
    errors = []
    by_id = {str(q.id): q for q in questions}

    for key in answers:
        if str(key) not in by_id:
            errors.append(f"Unknown question id {key}")

    for position, question in enumerate(questions, start=1):
        value = answers.get(str(question.id))
        if _is_blank(value):
            if question.required:
                errors.append(f"Question {position} is required")
            continue

        qtype = question.question_type
        option_texts = {o.option_text for o in question.options}

        if qtype in ("text", "textarea"):
            if not isinstance(value, str):
                errors.append(f"Question {position} expects a text answer")
        elif qtype in ("multiple-choice", "dropdown"):
            if not isinstance(value, str) or value not in option_texts:
                errors.append(f"Question {position} answer is not one of the options")
        elif qtype == "checkbox":
            if not isinstance(value, list) or any(not isinstance(v, str) or v not in option_texts for v in value):
                errors.append(f"Question {position} answers must be a list of the options")
        elif qtype in SCALE_TYPES:
            low = DEFAULT_SCALE_MIN if question.min_value is None else question.min_value
            high = DEFAULT_SCALE_MAX if question.max_value is None else question.max_value
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
                or int(value) != value
            ):
                errors.append(f"Question {position} expects a whole number")
            elif not low <= value <= high:
                errors.append(f"Question {position} must be between {low} and {high}")

    return errors
