from __future__ import annotations

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.sunday_attendance.sunday_attendance.core.enums import AssignmentRole
from src.sunday_attendance.sunday_attendance.core.exceptions import DataAccessError
from src.sunday_attendance.sunday_attendance.database.mysql_base import db_cursor, in_clause
from src.sunday_attendance.sunday_attendance.schedules.mysql_schedule_repository import MySQLScheduleRepository


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.rowcount = 0
        self.lastrowid = None

    def execute(self, sql, params=()):
        self._conn.statements.append((" ".join(sql.split()), params))
        if self._conn.fail_on and self._conn.fail_on in sql:
            raise self._conn.error

    def executemany(self, sql, rows):
        self._conn.statements.append((" ".join(sql.split()), list(rows)))
        if self._conn.fail_on and self._conn.fail_on in sql:
            raise self._conn.error

    def fetchall(self):
        return []

    def fetchone(self):
        return None

    def close(self):
        pass


class FakeConnection:
    def __init__(self, *, fail_on=None, error=None):
        self.statements = []
        self.fail_on = fail_on
        self.error = error
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self):
        return self.conn


def test_db_cursor_commits_on_success():
    conn = FakeConnection()
    with db_cursor(FakeFactory(conn), context="fetch students") as (_, cur):
        cur.execute("SELECT 1")
    assert conn.committed and conn.closed and not conn.rolled_back


def test_db_cursor_translates_driver_errors_with_context():
    err = mysql.connector.Error(msg="Duplicate entry 'x'", errno=errorcode.ER_DUP_ENTRY)
    conn = FakeConnection(fail_on="INSERT", error=err)

    with pytest.raises(DataAccessError) as exc:
        with db_cursor(FakeFactory(conn), context="create student") as (_, cur):
            cur.execute("INSERT INTO students(name) VALUES(%s)", ("x",))

    assert str(exc.value).startswith("Failed to create student:")
    assert exc.value.duplicate
    assert conn.rolled_back and not conn.committed


def test_replace_assignments_rolls_back_as_one_unit():
    err = mysql.connector.Error(msg="Cannot add or update a child row", errno=errorcode.ER_NO_REFERENCED_ROW_2)
    conn = FakeConnection(fail_on="INSERT INTO schedule_assignments", error=err)
    repo = MySQLScheduleRepository(FakeFactory(conn))

    with pytest.raises(DataAccessError) as exc:
        repo.replace_assignments(schedule_id=5, teacher_ids=[2, 99], role=AssignmentRole.TEACHER)

    assert not exc.value.duplicate
    assert conn.statements[0][0].startswith("DELETE FROM schedule_assignments")
    assert conn.rolled_back
    assert not conn.committed


def test_in_clause_refuses_empty_lists():
    assert in_clause([1, 2, 3]) == "%s, %s, %s"
    with pytest.raises(ValueError):
        in_clause([])
