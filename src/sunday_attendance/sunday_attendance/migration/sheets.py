"""One-off import of students, lessons and schedules from the old spreadsheet.

The spreadsheet endpoint returns ``{dates, lessonNames, lessonLinks, students}``.
Attendance history is not migrated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import requests

from ..common.datetime_utils import parse_iso_date
from ..core.constants import DEFAULT_SERVICE_TIME_NAME
from ..core.enums import EventType
from ..core.exceptions import MigrationError, ValidationError
from ..lessons.model import LessonDraft
from ..lessons.service import LessonService
from ..schedules.model import ScheduleDraft
from ..schedules.service import ScheduleService
from ..service_times.repository import ServiceTimeRepository
from ..students.repository import StudentRepository

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


@dataclass(frozen=True)
class SheetsPayload:
    dates: List[date] = field(default_factory=list)
    lesson_names: Dict[date, str] = field(default_factory=dict)
    lesson_links: Dict[date, str] = field(default_factory=dict)
    students: List[str] = field(default_factory=list)

    @classmethod
    def parse(cls, data: dict) -> "SheetsPayload":
        if not isinstance(data, dict):
            raise MigrationError("Unexpected spreadsheet payload")
        if data.get("success") is False:
            raise MigrationError("Spreadsheet endpoint reported failure")

        try:
            dates = [parse_iso_date(d) for d in data.get("dates") or []]
            names = {parse_iso_date(k): str(v).strip() for k, v in (data.get("lessonNames") or {}).items() if v}
            links = {parse_iso_date(k): str(v).strip() for k, v in (data.get("lessonLinks") or {}).items() if v}
        except ValidationError as e:
            raise MigrationError(f"Invalid date in spreadsheet payload: {e}") from e

        students: List[str] = []
        for raw in data.get("students") or []:
            name = raw.get("name") if isinstance(raw, dict) else raw
            name = " ".join(str(name or "").split())
            if name and name not in students:
                students.append(name)

        return cls(dates=dates, lesson_names=names, lesson_links=links, students=students)

    def lesson_drafts(self) -> List[LessonDraft]:
        """One draft per distinct lesson name; the link comes from the first date using it."""

        drafts: Dict[str, LessonDraft] = {}
        for day in sorted(self.lesson_names):
            name = self.lesson_names[day]
            if name not in drafts:
                drafts[name] = LessonDraft(name=name, resource_url=self.lesson_links.get(day))
        return list(drafts.values())


@dataclass(frozen=True)
class MigrationSummary:
    students: int
    lessons: int
    schedules: int

    def lines(self) -> List[str]:
        return [
            f"Students: {self.students}",
            f"Lessons: {self.lessons}",
            f"Schedules: {self.schedules}",
            "Attendance records are NOT migrated.",
        ]


def fetch_payload(url: str, *, session: Optional[requests.Session] = None, timeout: int = DEFAULT_TIMEOUT) -> SheetsPayload:
    http = session or requests.Session()
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        logger.exception("Failed to fetch spreadsheet data")
        raise MigrationError(f"Failed to fetch spreadsheet data: {e}") from e
    except ValueError as e:
        raise MigrationError("Spreadsheet endpoint did not return JSON") from e

    payload = SheetsPayload.parse(data)
    logger.info("Fetched %d student(s) and %d date(s)", len(payload.students), len(payload.dates))
    return payload


class SheetsMigration:
    def __init__(
        self,
        students: StudentRepository,
        service_times: ServiceTimeRepository,
        lesson_service: LessonService,
        schedule_service: ScheduleService,
    ):
        self._students = students
        self._service_times = service_times
        self._lessons = lesson_service
        self._schedules = schedule_service

    def run(self, payload: SheetsPayload) -> MigrationSummary:
        service_time = self._service_times.get_by_name(DEFAULT_SERVICE_TIME_NAME)
        if not service_time:
            raise MigrationError(f"Service time {DEFAULT_SERVICE_TIME_NAME} not found. Seed the database first.")

        students = self._students.upsert_by_name(payload.students) if payload.students else []
        logger.info("Migrated %d student(s)", len(students))

        lessons = self._lessons.upsert_many(payload.lesson_drafts()) if payload.lesson_names else []
        lesson_ids = {lesson.name: lesson.lesson_id for lesson in lessons}
        logger.info("Migrated %d lesson(s)", len(lessons))

        drafts = [
            ScheduleDraft(
                date=day,
                service_time_id=service_time.service_time_id,
                lesson_id=lesson_ids.get(" ".join(payload.lesson_names.get(day, "").split())),
                event_type=EventType.REGULAR,
                is_cancelled=False,
            )
            for day in payload.dates
        ]
        schedules = self._schedules.upsert_many(drafts) if drafts else []
        logger.info("Migrated %d schedule(s)", len(schedules))

        return MigrationSummary(students=len(students), lessons=len(lessons), schedules=len(schedules))

    def run_from_url(self, url: str, *, session: Optional[requests.Session] = None) -> MigrationSummary:
        return self.run(fetch_payload(url, session=session))
