from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ServiceTime


class ServiceTimeRepository(Protocol):
    def list_active(self) -> Sequence[ServiceTime]:
        raise NotImplementedError

    def get_by_id(self, service_time_id: int) -> Optional[ServiceTime]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[ServiceTime]:
        raise NotImplementedError
