from __future__ import annotations

from dataclasses import dataclass

from .alerts.service import AbsenceAlertService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .auth.identity import MySQLCredentialRepository, PasswordIdentityProvider
from .auth.service import AuthService
from .cache.query_cache import QueryCache
from .core.constants import ABSENCE_ALERT_THRESHOLD, STALE_TIME_DEFAULT
from .database.connection import DBConfig, DatabaseConnection
from .lessons.mysql_lesson_repository import MySQLLessonRepository
from .lessons.service import LessonService
from .migration.sheets import SheetsMigration
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.service import ScheduleService
from .service_times.mysql_service_time_repository import MySQLServiceTimeRepository
from .students.mysql_student_repository import MySQLStudentRepository
from .students.service import StudentService
from .teachers.mysql_teacher_repository import MySQLTeacherRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    students_repo: MySQLStudentRepository
    teachers_repo: MySQLTeacherRepository
    service_times_repo: MySQLServiceTimeRepository
    lessons_repo: MySQLLessonRepository
    schedules_repo: MySQLScheduleRepository
    attendance_repo: MySQLAttendanceRepository

    query_cache: QueryCache

    auth_service: AuthService
    student_service: StudentService
    lesson_service: LessonService
    schedule_service: ScheduleService
    attendance_service: AttendanceService
    alert_service: AbsenceAlertService
    migration: SheetsMigration


def build_container(
    *,
    db_config: dict,
    absence_threshold: int = ABSENCE_ALERT_THRESHOLD,
    stale_time: float = STALE_TIME_DEFAULT,
    shared_connection: bool = True,
) -> Container:
    config = DBConfig.from_dict(db_config)
    conn = DatabaseConnection.get_instance(config) if shared_connection else DatabaseConnection(config)

    students_repo = MySQLStudentRepository(conn)
    teachers_repo = MySQLTeacherRepository(conn)
    service_times_repo = MySQLServiceTimeRepository(conn)
    lessons_repo = MySQLLessonRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    auth_service = AuthService(PasswordIdentityProvider(MySQLCredentialRepository(conn)), teachers_repo)
    student_service = StudentService(students_repo)
    schedule_service = ScheduleService(schedules_repo)
    lesson_service = LessonService(lessons_repo, schedules_repo)
    attendance_service = AttendanceService(attendance_repo, schedules_repo, students_repo, schedule_service)
    alert_service = AbsenceAlertService(attendance_repo, students_repo, threshold=absence_threshold)
    migration = SheetsMigration(students_repo, service_times_repo, lesson_service, schedule_service)

    return Container(
        conn=conn,
        students_repo=students_repo,
        teachers_repo=teachers_repo,
        service_times_repo=service_times_repo,
        lessons_repo=lessons_repo,
        schedules_repo=schedules_repo,
        attendance_repo=attendance_repo,
        query_cache=QueryCache(stale_time=stale_time),
        auth_service=auth_service,
        student_service=student_service,
        lesson_service=lesson_service,
        schedule_service=schedule_service,
        attendance_service=attendance_service,
        alert_service=alert_service,
        migration=migration,
    )
