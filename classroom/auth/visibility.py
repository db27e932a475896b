"""
Visibility policy - what a principal may see of a document.

Two layers, applied in this order by the view helpers:

1. Ownership (tenant scoping): may this principal see or change THIS
   document at all? A student only sees exams for their own class, a
   teacher only changes exams they authored, admins see and change all.
2. Redaction: which fields of the document are removed for this role.
   The canonical case is the exam answer key, hidden from students and
   parents but kept for staff and for a student's own graded result.

Redaction rules are static configuration. `redact()` is pure: it never
mutates the input document.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any

from classroom.auth.context import Principal
from classroom.auth.roles import Role
from classroom.errors import Forbidden


class ResourceKind(str, Enum):
    EXAM = "exam"
    QUESTION = "question"
    SUBMISSION = "submission"
    USER = "user"


# =============================================================================
# Redaction Rules
# =============================================================================

_ANSWER_KEY = "correctAnswer"
_USER_SECRETS = frozenset({"password", "resetPasswordToken", "resetPasswordTime"})

# (resource kind, role) -> dotted field paths to omit.
# Lists along a path are traversed element-wise.
REDACTION_RULES: dict[ResourceKind, dict[Role, frozenset[str]]] = {
    ResourceKind.QUESTION: {
        Role.STUDENT: frozenset({_ANSWER_KEY}),
        Role.PARENT: frozenset({_ANSWER_KEY}),
    },
    ResourceKind.EXAM: {
        Role.STUDENT: frozenset({f"questions.{_ANSWER_KEY}"}),
        Role.PARENT: frozenset({f"questions.{_ANSWER_KEY}"}),
    },
    # The owning student needs the key to render feedback on their result
    ResourceKind.SUBMISSION: {
        Role.PARENT: frozenset({f"exam.questions.{_ANSWER_KEY}"}),
    },
    ResourceKind.USER: {role: _USER_SECRETS for role in Role},
}


def hidden_fields(kind: ResourceKind, role: Role) -> frozenset[str]:
    """Field paths removed for `role` on documents of `kind`."""
    return REDACTION_RULES.get(kind, {}).get(role, frozenset())


def redact(kind: ResourceKind | str, role: Role | str, document: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of `document` without the fields `role` may not see.

    Usage:
        redact("question", "student", {"questionText": "2+2?", "correctAnswer": "4"})
        # -> {"questionText": "2+2?"}
    """
    result = copy.deepcopy(document)
    for path in hidden_fields(ResourceKind(kind), Role(role)):
        _drop_path(result, path.split("."))
    return result


def _drop_path(node: Any, parts: list[str]) -> None:
    if isinstance(node, list):
        for item in node:
            _drop_path(item, parts)
        return
    if not isinstance(node, dict):
        return

    head, rest = parts[0], parts[1:]
    if not rest:
        node.pop(head, None)
    elif head in node:
        _drop_path(node[head], rest)


# =============================================================================
# Ownership Rules
# =============================================================================


def _ref_id(value: Any) -> str | None:
    """Reference fields may hold a raw id or a populated sub-document."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("_id", value.get("id"))
        if value is None:
            return None
    return str(value)


def ensure_can_view_exam(principal: Principal, exam: dict[str, Any]) -> None:
    """Staff see every exam; a student only exams targeted at their class."""
    if principal.is_staff:
        return
    if principal.role == Role.STUDENT:
        exam_class = _ref_id(exam.get("class"))
        if exam_class is not None and exam_class == _ref_id(principal.student_class):
            return
        raise Forbidden("You are not authorized to view this exam")
    raise Forbidden()


def ensure_can_modify_exam(principal: Principal, exam: dict[str, Any]) -> None:
    """Admins change any exam; a teacher only exams they authored."""
    if principal.is_admin:
        return
    if principal.role == Role.TEACHER and _ref_id(exam.get("teacher")) == principal.id:
        return
    raise Forbidden("Not authorized to modify this exam")


def ensure_can_view_submission(principal: Principal, submission: dict[str, Any]) -> None:
    """Staff see every submission; a student only their own."""
    if principal.is_staff:
        return
    if principal.role == Role.STUDENT and _ref_id(submission.get("student")) == principal.id:
        return
    raise Forbidden("You are not authorized to view this result")


def exam_list_filter(principal: Principal) -> dict[str, Any]:
    """
    Store query that scopes an exam listing to what the principal may see.

    Listings never carry answer keys, whatever the role; pair this with
    `redact(ResourceKind.EXAM, Role.STUDENT, ...)` or a projection that
    excludes the key.
    """
    if principal.is_admin:
        return {}
    if principal.role == Role.TEACHER:
        return {"teacher": principal.id}
    if principal.role == Role.STUDENT:
        # A null class would match unassigned exams
        if principal.student_class is None:
            raise Forbidden("Student is not assigned to a class")
        return {"class": principal.student_class, "isActive": True}
    raise Forbidden()


# =============================================================================
# View helpers (ownership, then redaction)
# =============================================================================


def view_exam(principal: Principal, exam: dict[str, Any]) -> dict[str, Any]:
    ensure_can_view_exam(principal, exam)
    return redact(ResourceKind.EXAM, principal.role, exam)


def view_submission(principal: Principal, submission: dict[str, Any]) -> dict[str, Any]:
    ensure_can_view_submission(principal, submission)
    return redact(ResourceKind.SUBMISSION, principal.role, submission)


def view_user(principal: Principal, user: dict[str, Any]) -> dict[str, Any]:
    return redact(ResourceKind.USER, principal.role, user)
