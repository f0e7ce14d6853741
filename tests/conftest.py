from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import Dict, List, Optional, Sequence

import pytest

from src.sunday_attendance.sunday_attendance.attendance.model import (
    AttendanceEntry,
    AttendanceRecord,
    AttendanceRecordView,
    DatedAttendance,
    StudentAttendanceRow,
)
from src.sunday_attendance.sunday_attendance.core.enums import AssignmentRole, StudentStatus, TeacherRole
from src.sunday_attendance.sunday_attendance.core.exceptions import DataAccessError
from src.sunday_attendance.sunday_attendance.lessons.model import Lesson, LessonDraft
from src.sunday_attendance.sunday_attendance.schedules.model import (
    Schedule,
    ScheduleAssignment,
    ScheduleDetail,
    ScheduleDraft,
)
from src.sunday_attendance.sunday_attendance.service_times.model import ServiceTime
from src.sunday_attendance.sunday_attendance.students.model import Student, StudentDraft
from src.sunday_attendance.sunday_attendance.teachers.model import Teacher


class InMemoryStudents:
    def __init__(self, students: Sequence[Student] = ()):
        self.by_id: Dict[int, Student] = {s.student_id: s for s in students}
        self._id = max(self.by_id, default=0)

    def list_active(self, *, include_visitors: bool = True) -> List[Student]:
        items = [s for s in self.by_id.values() if s.is_active and (include_visitors or not s.is_visitor)]
        return sorted(items, key=lambda s: s.name)

    def list_filtered(self, *, status=None, is_visitor=None) -> List[Student]:
        items = [
            s
            for s in self.by_id.values()
            if (status is None or s.status == status) and (is_visitor is None or s.is_visitor == is_visitor)
        ]
        return sorted(items, key=lambda s: s.name)

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self.by_id.get(student_id)

    def get_by_name(self, name: str) -> Optional[Student]:
        return next((s for s in self.by_id.values() if s.name == name), None)

    def create(self, draft: StudentDraft) -> Student:
        self._id += 1
        student = Student(student_id=self._id, **draft.__dict__)
        self.by_id[student.student_id] = student
        return student

    def update(self, student_id: int, draft: StudentDraft) -> Student:
        student = Student(student_id=student_id, **draft.__dict__)
        self.by_id[student_id] = student
        return student

    def set_status(self, student_id: int, status: StudentStatus) -> bool:
        if student_id not in self.by_id:
            return False
        self.by_id[student_id] = replace(self.by_id[student_id], status=status)
        return True

    def upsert_by_name(self, names: Sequence[str]) -> List[Student]:
        out = []
        for name in names:
            existing = self.get_by_name(name)
            if existing:
                existing = replace(existing, is_visitor=False, status=StudentStatus.ACTIVE)
                self.by_id[existing.student_id] = existing
                out.append(existing)
            else:
                out.append(self.create(StudentDraft(name=name)))
        return out


class InMemoryTeachers:
    def __init__(self, teachers: Sequence[Teacher] = ()):
        self.by_id: Dict[int, Teacher] = {t.teacher_id: t for t in teachers}
        self.links: List[tuple] = []

    def list_active(self) -> List[Teacher]:
        return [t for t in self.by_id.values() if t.is_active]

    def get_by_id(self, teacher_id: int) -> Optional[Teacher]:
        return self.by_id.get(teacher_id)

    def get_active_by_email(self, email: str) -> Optional[Teacher]:
        return next((t for t in self.by_id.values() if t.email == email and t.is_active), None)

    def get_by_auth_id(self, auth_user_id: str) -> Optional[Teacher]:
        return next((t for t in self.by_id.values() if t.auth_user_id == auth_user_id), None)

    def link_auth_user(self, teacher_id: int, auth_user_id: str) -> bool:
        self.links.append((teacher_id, auth_user_id))
        self.by_id[teacher_id] = replace(self.by_id[teacher_id], auth_user_id=auth_user_id)
        return True


class InMemoryServiceTimes:
    def __init__(self, service_times: Sequence[ServiceTime] = ()):
        self.by_id: Dict[int, ServiceTime] = {st.service_time_id: st for st in service_times}

    def list_active(self) -> List[ServiceTime]:
        return sorted((st for st in self.by_id.values() if st.is_active), key=lambda st: st.display_order)

    def get_by_id(self, service_time_id: int) -> Optional[ServiceTime]:
        return self.by_id.get(service_time_id)

    def get_by_name(self, name: str) -> Optional[ServiceTime]:
        return next((st for st in self.by_id.values() if st.name == name), None)


class InMemoryLessons:
    def __init__(self, lessons: Sequence[Lesson] = ()):
        self.by_id: Dict[int, Lesson] = {lesson.lesson_id: lesson for lesson in lessons}
        self._id = max(self.by_id, default=0)

    def list_all(self) -> List[Lesson]:
        return sorted(
            self.by_id.values(),
            key=lambda l: (l.curriculum_series is None, l.curriculum_series or "", l.lesson_number or 0, l.name),
        )

    def get_by_id(self, lesson_id: int) -> Optional[Lesson]:
        return self.by_id.get(lesson_id)

    def get_by_name(self, name: str) -> Optional[Lesson]:
        return next((l for l in self.by_id.values() if l.name == name), None)

    def create(self, draft: LessonDraft) -> Lesson:
        self._id += 1
        lesson = Lesson(lesson_id=self._id, **draft.__dict__)
        self.by_id[lesson.lesson_id] = lesson
        return lesson

    def update(self, lesson_id: int, draft: LessonDraft) -> Lesson:
        lesson = Lesson(lesson_id=lesson_id, **draft.__dict__)
        self.by_id[lesson_id] = lesson
        return lesson

    def delete(self, lesson_id: int) -> bool:
        return self.by_id.pop(lesson_id, None) is not None

    def upsert_by_name(self, drafts: Sequence[LessonDraft]) -> List[Lesson]:
        out = []
        for draft in drafts:
            existing = self.get_by_name(draft.name)
            out.append(self.update(existing.lesson_id, draft) if existing else self.create(draft))
        return out


class InMemorySchedules:
    def __init__(
        self,
        schedules: Sequence[Schedule] = (),
        *,
        lessons: Optional[InMemoryLessons] = None,
        service_times: Optional[InMemoryServiceTimes] = None,
        teachers: Optional[InMemoryTeachers] = None,
    ):
        self.by_id: Dict[int, Schedule] = {s.schedule_id: s for s in schedules}
        self.assignments: Dict[int, List[ScheduleAssignment]] = {}
        self.attendance_counts: Dict[int, int] = {}
        self.lessons = lessons or InMemoryLessons()
        self.service_times = service_times or InMemoryServiceTimes()
        self.teachers = teachers or InMemoryTeachers()
        self._id = max(self.by_id, default=0)
        self._assignment_id = 0
        self.fail_create_with_duplicate: Optional[Schedule] = None

    def _detail(self, s: Schedule) -> ScheduleDetail:
        return ScheduleDetail(
            schedule=s,
            lesson=self.lessons.get_by_id(s.lesson_id) if s.lesson_id else None,
            service_time=self.service_times.get_by_id(s.service_time_id) if s.service_time_id else None,
            assignments=tuple(self.assignments.get(s.schedule_id, [])),
            attendance_count=self.attendance_counts.get(s.schedule_id, 0),
        )

    def list_details(
        self,
        *,
        until=None,
        since=None,
        service_time_id=None,
        lesson_id=None,
        include_cancelled=True,
        ascending=False,
        limit=None,
    ) -> List[ScheduleDetail]:
        items = [
            s
            for s in self.by_id.values()
            if (until is None or s.date <= until)
            and (since is None or s.date >= since)
            and (service_time_id is None or s.service_time_id == service_time_id)
            and (lesson_id is None or s.lesson_id == lesson_id)
            and (include_cancelled or not s.is_cancelled)
        ]
        items.sort(key=lambda s: (s.date, s.service_time_id or 0), reverse=not ascending)
        if limit is not None:
            items = items[:limit]
        return [self._detail(s) for s in items]

    def get_detail(self, schedule_id: int) -> Optional[ScheduleDetail]:
        s = self.by_id.get(schedule_id)
        return self._detail(s) if s else None

    def get_by_date_and_service(self, *, on: date, service_time_id: int) -> Optional[Schedule]:
        return next((s for s in self.by_id.values() if s.date == on and s.service_time_id == service_time_id), None)

    def list_dates(self) -> List[date]:
        return sorted({s.date for s in self.by_id.values()}, reverse=True)

    def create(self, draft: ScheduleDraft) -> Schedule:
        if self.fail_create_with_duplicate is not None:
            # Simulates a concurrent insert winning the race.
            winner, self.fail_create_with_duplicate = self.fail_create_with_duplicate, None
            self.by_id[winner.schedule_id] = winner
            raise DataAccessError("Failed to create schedule: Duplicate entry", duplicate=True)
        if self.get_by_date_and_service(on=draft.date, service_time_id=draft.service_time_id):
            raise DataAccessError("Failed to create schedule: Duplicate entry", duplicate=True)
        self._id += 1
        schedule = Schedule(schedule_id=self._id, **draft.__dict__)
        self.by_id[schedule.schedule_id] = schedule
        return schedule

    def update(self, schedule_id: int, draft: ScheduleDraft) -> Schedule:
        schedule = Schedule(schedule_id=schedule_id, **draft.__dict__)
        self.by_id[schedule_id] = schedule
        return schedule

    def upsert_by_date_and_service(self, drafts: Sequence[ScheduleDraft]) -> List[Schedule]:
        out = []
        for draft in drafts:
            existing = self.get_by_date_and_service(on=draft.date, service_time_id=draft.service_time_id)
            out.append(self.update(existing.schedule_id, draft) if existing else self.create(draft))
        return out

    def list_assignments(self, schedule_id: int) -> List[ScheduleAssignment]:
        return list(self.assignments.get(schedule_id, []))

    def _assignment(self, schedule_id: int, teacher_id: int, role: AssignmentRole) -> ScheduleAssignment:
        self._assignment_id += 1
        return ScheduleAssignment(
            assignment_id=self._assignment_id,
            schedule_id=schedule_id,
            teacher_id=teacher_id,
            role=role,
            teacher=self.teachers.get_by_id(teacher_id),
        )

    def replace_assignments(self, *, schedule_id: int, teacher_ids: Sequence[int], role=AssignmentRole.TEACHER):
        self.assignments[schedule_id] = [self._assignment(schedule_id, tid, role) for tid in teacher_ids]
        return list(self.assignments[schedule_id])

    def add_assignment(self, *, schedule_id: int, teacher_id: int, role: AssignmentRole) -> ScheduleAssignment:
        assignment = self._assignment(schedule_id, teacher_id, role)
        self.assignments.setdefault(schedule_id, []).append(assignment)
        return assignment

    def remove_assignment(self, *, schedule_id: int, teacher_id: int) -> bool:
        current = self.assignments.get(schedule_id, [])
        kept = [a for a in current if a.teacher_id != teacher_id]
        self.assignments[schedule_id] = kept
        return len(kept) != len(current)


class InMemoryAttendance:
    def __init__(self, students: InMemoryStudents, schedules: InMemorySchedules):
        self.students = students
        self.schedules = schedules
        self.by_id: Dict[int, AttendanceRecord] = {}
        self._id = 0
        self.fail_bulk_save = False
        self.fail_reads = False
        self.failing_reads = 0

    def _sync_counts(self) -> None:
        counts: Dict[int, int] = {}
        for r in self.by_id.values():
            counts[r.schedule_id] = counts.get(r.schedule_id, 0) + 1
        self.schedules.attendance_counts = counts

    def _view(self, r: AttendanceRecord) -> AttendanceRecordView:
        student = self.students.get_by_id(r.student_id)
        return AttendanceRecordView(record=r, student_name=student.name, is_visitor=student.is_visitor)

    def add(self, *, student_id: int, schedule_id: int, status, notes=None) -> AttendanceRecord:
        self._id += 1
        record = AttendanceRecord(
            record_id=self._id,
            student_id=student_id,
            schedule_id=schedule_id,
            status=status,
            service_time_id=self.schedules.by_id[schedule_id].service_time_id,
            notes=notes,
        )
        self.by_id[record.record_id] = record
        self._sync_counts()
        return record

    def list_by_schedule(self, schedule_id: int) -> List[AttendanceRecordView]:
        return self.list_by_schedules([schedule_id])

    def list_by_schedules(self, schedule_ids: Sequence[int]) -> List[AttendanceRecordView]:
        views = [self._view(r) for r in self.by_id.values() if r.schedule_id in set(schedule_ids)]
        return sorted(views, key=lambda v: v.student_name)

    def list_by_student(self, student_id: int) -> List[StudentAttendanceRow]:
        rows = []
        for r in self.by_id.values():
            if r.student_id != student_id:
                continue
            schedule = self.schedules.by_id[r.schedule_id]
            st = self.schedules.service_times.get_by_id(schedule.service_time_id)
            rows.append(StudentAttendanceRow(record=r, date=schedule.date, service_time_name=st.name if st else None))
        return sorted(rows, key=lambda row: row.date, reverse=True)

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        return self.by_id.get(record_id)

    def bulk_save(self, *, schedule_id, service_time_id, entries: Sequence[AttendanceEntry], marked_by, marked_at) -> int:
        if self.fail_bulk_save:
            raise DataAccessError("Failed to save attendance: connection lost")
        keep = {e.student_id for e in entries}
        for rid in [rid for rid, r in self.by_id.items() if r.schedule_id == schedule_id and r.student_id not in keep]:
            del self.by_id[rid]
        for e in entries:
            existing = next(
                (r for r in self.by_id.values() if r.schedule_id == schedule_id and r.student_id == e.student_id),
                None,
            )
            if existing:
                self.by_id[existing.record_id] = replace(
                    existing, status=e.status, notes=e.notes, marked_by=marked_by, marked_at=marked_at
                )
            else:
                self._id += 1
                self.by_id[self._id] = AttendanceRecord(
                    record_id=self._id,
                    student_id=e.student_id,
                    schedule_id=schedule_id,
                    status=e.status,
                    service_time_id=service_time_id,
                    notes=e.notes,
                    marked_by=marked_by,
                    marked_at=marked_at,
                )
        self._sync_counts()
        return len(entries)

    def create_record(self, *, schedule_id, service_time_id, entry: AttendanceEntry, marked_by, marked_at) -> AttendanceRecord:
        record = self.add(student_id=entry.student_id, schedule_id=schedule_id, status=entry.status, notes=entry.notes)
        record = replace(record, marked_by=marked_by, marked_at=marked_at)
        self.by_id[record.record_id] = record
        return record

    def update_record(self, record_id: int, *, status, notes) -> bool:
        if record_id not in self.by_id:
            return False
        self.by_id[record_id] = replace(self.by_id[record_id], status=status, notes=notes)
        return True

    def delete_record(self, record_id: int) -> bool:
        removed = self.by_id.pop(record_id, None) is not None
        self._sync_counts()
        return removed

    def list_dated_before(self, student_ids: Sequence[int], *, before: date) -> List[DatedAttendance]:
        if self.fail_reads or self.failing_reads > 0:
            self.failing_reads -= 1
            raise DataAccessError("Failed to fetch attendance history: timeout")
        out = []
        for r in self.by_id.values():
            schedule = self.schedules.by_id[r.schedule_id]
            if r.student_id in set(student_ids) and schedule.date < before:
                out.append(DatedAttendance(student_id=r.student_id, date=schedule.date, status=r.status))
        return out


@pytest.fixture
def fixed_now() -> datetime:
    # a Sunday
    return datetime(2025, 11, 23, 10, 30, 0)


@pytest.fixture
def fixed_today(fixed_now) -> date:
    return fixed_now.date()


@pytest.fixture
def service_times() -> InMemoryServiceTimes:
    return InMemoryServiceTimes(
        [
            ServiceTime(service_time_id=1, time=time(9, 0), name="9h", display_order=1),
            ServiceTime(service_time_id=2, time=time(11, 0), name="11h", display_order=2),
        ]
    )


@pytest.fixture
def teachers() -> InMemoryTeachers:
    return InMemoryTeachers(
        [
            Teacher(teacher_id=1, name="Admin", email="admin@igreja.local", role=TeacherRole.ADMIN),
            Teacher(teacher_id=2, name="Ana", email="ana@igreja.local"),
            Teacher(teacher_id=3, name="Bruno", email="bruno@igreja.local"),
        ]
    )


@pytest.fixture
def students() -> InMemoryStudents:
    return InMemoryStudents(
        [
            Student(student_id=1, name="Alice Souza"),
            Student(student_id=2, name="Bruna Lima"),
            Student(student_id=3, name="Caio Pereira"),
            Student(student_id=4, name="Joana Visitante", is_visitor=True, visitor_date=date(2025, 11, 9)),
            Student(student_id=5, name="Davi Antigo", status=StudentStatus.MOVED),
        ]
    )


@pytest.fixture
def lessons() -> InMemoryLessons:
    return InMemoryLessons(
        [
            Lesson(lesson_id=1, name="Q4 1. Criação", curriculum_series="Q4", lesson_number=1),
            Lesson(lesson_id=2, name="Culto da Família", is_special_event=True),
        ]
    )


@pytest.fixture
def schedules(lessons, service_times, teachers) -> InMemorySchedules:
    return InMemorySchedules(lessons=lessons, service_times=service_times, teachers=teachers)


@pytest.fixture
def attendance(students, schedules) -> InMemoryAttendance:
    return InMemoryAttendance(students, schedules)
