from __future__ import annotations

from datetime import date

import pytest

from src.sunday_attendance.sunday_attendance.core.enums import StudentStatus
from src.sunday_attendance.sunday_attendance.core.exceptions import NotFoundError, ValidationError
from src.sunday_attendance.sunday_attendance.students.model import StudentDraft
from src.sunday_attendance.sunday_attendance.students.service import StudentService


@pytest.fixture
def svc(students, fixed_today):
    return StudentService(students, today=lambda: fixed_today)


def test_create_normalizes_name_and_rejects_duplicates(svc):
    student = svc.create(StudentDraft(name="  Eva   Martins ", notes="  "))
    assert student.name == "Eva Martins"
    assert student.notes is None

    with pytest.raises(ValidationError):
        svc.create(StudentDraft(name="Eva Martins"))


def test_future_birth_date_is_rejected(svc):
    with pytest.raises(ValidationError):
        svc.create(StudentDraft(name="Futuro", date_of_birth=date(2030, 1, 1)))


def test_delete_is_a_soft_delete(svc, students):
    svc.delete(1)
    assert students.get_by_id(1).status == StudentStatus.INACTIVE
    assert 1 not in [s.student_id for s in svc.list_active()]

    svc.reactivate(1)
    assert students.get_by_id(1).is_active


def test_get_unknown_student(svc):
    with pytest.raises(NotFoundError):
        svc.get(404)


def test_add_visitor_sets_visitor_date_to_today(svc, fixed_today):
    visitor = svc.add_visitor("Lucas Novo", notes="veio com a avó")
    assert visitor.is_visitor
    assert visitor.visitor_date == fixed_today
    assert visitor.notes == "veio com a avó"


def test_add_visitor_reuses_existing_visitor(svc, students):
    students.set_status(4, StudentStatus.INACTIVE)
    visitor = svc.add_visitor("Joana Visitante")
    assert visitor.student_id == 4
    assert students.get_by_id(4).is_active


def test_add_visitor_with_roster_name_is_rejected(svc):
    with pytest.raises(ValidationError):
        svc.add_visitor("Alice Souza")


def test_search_is_accent_insensitive(svc):
    svc.create(StudentDraft(name="João Batista"))
    results = svc.search(query="joao", status=StudentStatus.ACTIVE)
    assert results[0].name == "João Batista"
    assert "Alice Souza" not in [s.name for s in results]


def test_search_filters_by_visitor_flag(svc):
    assert [s.student_id for s in svc.search(is_visitor=True)] == [4]
