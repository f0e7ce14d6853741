from __future__ import annotations

from datetime import date

import pytest
import requests

from src.sunday_attendance.sunday_attendance.core.exceptions import MigrationError
from src.sunday_attendance.sunday_attendance.lessons.service import LessonService
from src.sunday_attendance.sunday_attendance.migration.sheets import SheetsMigration, SheetsPayload, fetch_payload
from src.sunday_attendance.sunday_attendance.schedules.service import ScheduleService

PAYLOAD = {
    "success": True,
    "dates": ["2025-09-07", "2025-09-14", "2025-09-21"],
    "lessonNames": {
        "2025-09-07": "Q3 1. Abraão",
        "2025-09-14": "Q3  1.  Abraão",
        "2025-09-21": "Piquenique",
    },
    "lessonLinks": {
        "2025-09-07": "https://example.org/q3-1",
        "2025-09-14": "https://example.org/q3-1-repeat",
    },
    "students": [{"name": "Alice Souza"}, {"name": " Eva  Martins "}, {"name": "Eva Martins"}, {"name": ""}],
}


class FakeResponse:
    def __init__(self, data, status=200):
        self._data = data
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append((url, timeout))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def migration(students, service_times, lessons, schedules, fixed_today):
    return SheetsMigration(
        students,
        service_times,
        LessonService(lessons, schedules),
        ScheduleService(schedules, today=lambda: fixed_today),
    )


def test_payload_dedupes_students_and_lessons():
    payload = SheetsPayload.parse(PAYLOAD)
    assert payload.students == ["Alice Souza", "Eva Martins"]

    drafts = {d.name: d for d in payload.lesson_drafts()}
    # names are compared after whitespace cleanup by the lesson service
    assert drafts["Q3 1. Abraão"].resource_url == "https://example.org/q3-1"
    assert drafts["Piquenique"].resource_url is None


def test_payload_rejects_failure_and_bad_dates():
    with pytest.raises(MigrationError):
        SheetsPayload.parse({"success": False})
    with pytest.raises(MigrationError):
        SheetsPayload.parse({"dates": ["07/09/2025"]})


def test_run_upserts_students_lessons_and_schedules(migration, students, lessons, schedules):
    summary = migration.run(SheetsPayload.parse(PAYLOAD))

    assert summary.students == 2
    assert summary.lessons == 2
    assert summary.schedules == 3
    assert students.get_by_name("Eva Martins") is not None

    abraao = lessons.get_by_name("Q3 1. Abraão")
    assert abraao.curriculum_series == "Q3"
    picnic = lessons.get_by_name("Piquenique")
    assert picnic.is_special_event

    by_date = {s.date: s for s in schedules.by_id.values()}
    assert by_date[date(2025, 9, 7)].lesson_id == abraao.lesson_id
    assert by_date[date(2025, 9, 14)].lesson_id == abraao.lesson_id
    assert by_date[date(2025, 9, 21)].lesson_id == picnic.lesson_id
    assert {s.service_time_id for s in by_date.values()} == {2}


def test_rerunning_is_idempotent(migration, schedules):
    migration.run(SheetsPayload.parse(PAYLOAD))
    migration.run(SheetsPayload.parse(PAYLOAD))
    assert len(schedules.by_id) == 3


def test_missing_default_service_time_aborts(students, service_times, lessons, schedules, fixed_today):
    service_times.by_id.pop(2)
    migration = SheetsMigration(
        students,
        service_times,
        LessonService(lessons, schedules),
        ScheduleService(schedules, today=lambda: fixed_today),
    )
    with pytest.raises(MigrationError, match="11h"):
        migration.run(SheetsPayload.parse(PAYLOAD))


def test_fetch_payload_uses_session_and_timeout():
    session = FakeSession(FakeResponse(PAYLOAD))
    payload = fetch_payload("https://sheets.example/exec", session=session)
    assert session.requested == [("https://sheets.example/exec", 30)]
    assert len(payload.dates) == 3


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(PAYLOAD, status=500),
        FakeResponse(ValueError("not json")),
        requests.exceptions.ConnectionError("offline"),
    ],
)
def test_fetch_payload_wraps_http_failures(response):
    with pytest.raises(MigrationError):
        fetch_payload("https://sheets.example/exec", session=FakeSession(response))
