from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import normalize_time
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import ServiceTime
from .repository import ServiceTimeRepository

_COLUMNS = "service_time_id, time, name, is_active, display_order"


def _to_service_time(r: dict) -> ServiceTime:
    return ServiceTime(
        service_time_id=int(r["service_time_id"]),
        time=normalize_time(r["time"]),
        name=r["name"],
        is_active=as_bool(r.get("is_active"), default=True),
        display_order=int(r.get("display_order") or 0),
    )


class MySQLServiceTimeRepository(ServiceTimeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active(self) -> Sequence[ServiceTime]:
        with db_cursor(self._conn_factory, context="fetch service times") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM service_times WHERE is_active=1 ORDER BY display_order ASC")
            return [_to_service_time(r) for r in fetchall(cur)]

    def get_by_id(self, service_time_id: int) -> Optional[ServiceTime]:
        with db_cursor(self._conn_factory, context="fetch service time") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM service_times WHERE service_time_id=%s", (int(service_time_id),))
            r = fetchone(cur)
            return _to_service_time(r) if r else None

    def get_by_name(self, name: str) -> Optional[ServiceTime]:
        with db_cursor(self._conn_factory, context="fetch service time") as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM service_times WHERE name=%s", (name,))
            r = fetchone(cur)
            return _to_service_time(r) if r else None
