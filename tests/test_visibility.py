"""
Tests for field redaction and ownership rules.
"""

import pytest

from classroom.auth.context import Principal
from classroom.auth.roles import Role
from classroom.auth.visibility import (
    ResourceKind,
    ensure_can_modify_exam,
    ensure_can_view_exam,
    exam_list_filter,
    redact,
    view_exam,
    view_submission,
    view_user,
)
from classroom.errors import Forbidden


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def student():
    return Principal(id="user_alice", role=Role.STUDENT, student_class="class-1")


@pytest.fixture
def teacher():
    return Principal(id="user_bob", role=Role.TEACHER)


@pytest.fixture
def admin():
    return Principal(id="user_carol", role=Role.ADMIN)


@pytest.fixture
def parent():
    return Principal(id="user_pat", role=Role.PARENT)


@pytest.fixture
def exam():
    return {
        "_id": "exam_1",
        "title": "Arithmetic",
        "class": {"_id": "class-1", "name": "Grade 1"},
        "teacher": "user_bob",
        "isActive": True,
        "questions": [
            {"_id": "q1", "questionText": "2+2?", "options": ["3", "4"], "correctAnswer": "4"},
            {"_id": "q2", "questionText": "3+3?", "options": ["6", "7"], "correctAnswer": "6"},
        ],
    }


# =============================================================================
# Redaction
# =============================================================================


class TestRedact:
    def test_question_for_student(self):
        doc = {"questionText": "2+2?", "correctAnswer": "4"}

        assert redact("question", "student", doc) == {"questionText": "2+2?"}

    def test_question_for_teacher(self):
        doc = {"questionText": "2+2?", "correctAnswer": "4"}

        assert redact("question", "teacher", doc) == doc

    def test_does_not_mutate_input(self, exam):
        redact(ResourceKind.EXAM, Role.STUDENT, exam)

        assert exam["questions"][0]["correctAnswer"] == "4"

    def test_exam_answer_keys_hidden_in_every_question(self, exam):
        result = redact(ResourceKind.EXAM, Role.STUDENT, exam)

        assert all("correctAnswer" not in q for q in result["questions"])
        assert result["questions"][1]["questionText"] == "3+3?"

    @pytest.mark.parametrize("role", [Role.TEACHER, Role.ADMIN])
    def test_exam_answer_keys_kept_for_staff(self, exam, role):
        assert redact(ResourceKind.EXAM, role, exam) == exam

    def test_missing_path_is_ignored(self):
        assert redact(ResourceKind.EXAM, Role.PARENT, {"title": "x"}) == {"title": "x"}

    def test_user_secrets_hidden_from_everyone(self):
        user = {"_id": "u1", "name": "Alice", "password": "$hash", "resetPasswordToken": "t"}

        for role in Role:
            assert redact(ResourceKind.USER, role, user) == {"_id": "u1", "name": "Alice"}

    def test_submission_answer_key_hidden_from_parent(self, exam):
        submission = {"student": "user_alice", "score": 2, "exam": exam}

        result = redact(ResourceKind.SUBMISSION, Role.PARENT, submission)

        assert all("correctAnswer" not in q for q in result["exam"]["questions"])


# =============================================================================
# Ownership
# =============================================================================


class TestViewExam:
    def test_student_own_class(self, student, exam):
        result = view_exam(student, exam)

        assert result["title"] == "Arithmetic"
        assert "correctAnswer" not in result["questions"][0]

    def test_student_class_as_plain_id(self, student, exam):
        exam["class"] = "class-1"

        ensure_can_view_exam(student, exam)

    def test_student_other_class(self, student, exam):
        exam["class"] = {"_id": "class-2"}

        with pytest.raises(Forbidden):
            view_exam(student, exam)

    def test_student_without_class(self, exam):
        loner = Principal(id="user_x", role=Role.STUDENT)

        with pytest.raises(Forbidden):
            view_exam(loner, exam)

    def test_teacher_sees_answers(self, teacher, exam):
        assert view_exam(teacher, exam)["questions"][0]["correctAnswer"] == "4"

    def test_parent_denied(self, parent, exam):
        with pytest.raises(Forbidden):
            view_exam(parent, exam)


class TestModifyExam:
    def test_author(self, teacher, exam):
        ensure_can_modify_exam(teacher, exam)

    def test_author_populated(self, teacher, exam):
        exam["teacher"] = {"_id": "user_bob", "name": "Bob"}

        ensure_can_modify_exam(teacher, exam)

    def test_other_teacher(self, exam):
        other = Principal(id="user_eve", role=Role.TEACHER)

        with pytest.raises(Forbidden):
            ensure_can_modify_exam(other, exam)

    def test_admin_any(self, admin, exam):
        ensure_can_modify_exam(admin, exam)

    def test_student(self, student, exam):
        with pytest.raises(Forbidden):
            ensure_can_modify_exam(student, exam)


class TestViewSubmission:
    def test_own_result_keeps_answer_key(self, student, exam):
        submission = {"student": "user_alice", "score": 2, "exam": exam}

        result = view_submission(student, submission)

        assert result["exam"]["questions"][0]["correctAnswer"] == "4"

    def test_other_students_result(self, exam):
        other = Principal(id="user_zoe", role=Role.STUDENT, student_class="class-1")

        with pytest.raises(Forbidden):
            view_submission(other, {"student": "user_alice", "exam": exam})

    def test_teacher(self, teacher, exam):
        view_submission(teacher, {"student": "user_alice", "exam": exam})


class TestExamListFilter:
    def test_student(self, student):
        assert exam_list_filter(student) == {"class": "class-1", "isActive": True}

    def test_student_without_class(self):
        unassigned = Principal(id="user_eve", role=Role.STUDENT)

        with pytest.raises(Forbidden):
            exam_list_filter(unassigned)

    def test_teacher(self, teacher):
        assert exam_list_filter(teacher) == {"teacher": "user_bob"}

    def test_admin(self, admin):
        assert exam_list_filter(admin) == {}

    def test_parent(self, parent):
        with pytest.raises(Forbidden):
            exam_list_filter(parent)


def test_view_user(admin):
    assert view_user(admin, {"name": "Alice", "password": "$hash"}) == {"name": "Alice"}
