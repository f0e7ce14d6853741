from __future__ import annotations

from datetime import date

import pytest

from src.sunday_attendance.sunday_attendance.core.enums import AssignmentRole, EventType
from src.sunday_attendance.sunday_attendance.core.exceptions import NotFoundError, ValidationError
from src.sunday_attendance.sunday_attendance.schedules.model import Schedule, ScheduleDraft
from src.sunday_attendance.sunday_attendance.schedules.service import ScheduleService


@pytest.fixture
def svc(schedules, fixed_today):
    return ScheduleService(schedules, today=lambda: fixed_today)


def test_find_or_create_returns_existing(svc, schedules):
    existing = schedules.create(ScheduleDraft(date=date(2025, 11, 23), service_time_id=2))
    assert svc.find_or_create(on=date(2025, 11, 23), service_time_id=2) == existing
    assert len(schedules.by_id) == 1


def test_find_or_create_refetches_after_duplicate_race(svc, schedules):
    winner = Schedule(schedule_id=77, date=date(2025, 11, 23), service_time_id=2)
    schedules.fail_create_with_duplicate = winner

    assert svc.find_or_create(on=date(2025, 11, 23), service_time_id=2) == winner


def test_upcoming_skips_past_and_cancelled(svc, schedules):
    schedules.create(ScheduleDraft(date=date(2025, 11, 16), service_time_id=2))
    schedules.create(ScheduleDraft(date=date(2025, 11, 30), service_time_id=2, is_cancelled=True))
    later = schedules.create(ScheduleDraft(date=date(2025, 12, 7), service_time_id=2))
    today = schedules.create(ScheduleDraft(date=date(2025, 11, 23), service_time_id=1))

    assert [d.schedule_id for d in svc.upcoming()] == [today.schedule_id, later.schedule_id]


def test_replace_teachers_dedupes_and_keeps_order(svc, schedules):
    s = schedules.create(ScheduleDraft(date=date(2025, 11, 23), service_time_id=2))
    schedules.add_assignment(schedule_id=s.schedule_id, teacher_id=1, role=AssignmentRole.LEAD)

    assignments = svc.replace_teachers(s.schedule_id, [3, 2, 3])

    assert [a.teacher_id for a in assignments] == [3, 2]
    assert [t.name for t in svc.get_detail(s.schedule_id).teachers] == ["Bruno", "Ana"]


def test_replace_teachers_rejects_bad_ids(svc, schedules):
    s = schedules.create(ScheduleDraft(date=date(2025, 11, 23), service_time_id=2))
    with pytest.raises(ValidationError):
        svc.replace_teachers(s.schedule_id, [2, 0])
    with pytest.raises(NotFoundError):
        svc.replace_teachers(999, [2])


def test_add_and_remove_single_teacher(svc, schedules):
    s = schedules.create(ScheduleDraft(date=date(2025, 11, 23), service_time_id=2))
    svc.add_teacher(s.schedule_id, 2, role=AssignmentRole.ASSISTANT)

    with pytest.raises(ValidationError):
        svc.add_teacher(s.schedule_id, 2)

    svc.remove_teacher(s.schedule_id, 2)
    with pytest.raises(ValidationError):
        svc.remove_teacher(s.schedule_id, 2)


def test_cancel_flag_drives_event_type(svc, schedules):
    s = schedules.create(ScheduleDraft(date=date(2025, 11, 23), service_time_id=2, lesson_id=1))

    cancelled = svc.update(s.schedule_id, lesson_id=1, notes="  chuva ", is_cancelled=True)
    assert cancelled.event_type == EventType.CANCELLED
    assert cancelled.notes == "chuva"

    restored = svc.update(s.schedule_id, lesson_id=None, is_cancelled=False)
    assert restored.event_type == EventType.REGULAR
    assert restored.lesson_id is None
