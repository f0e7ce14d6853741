from __future__ import annotations

from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True)
class ServiceTime:
    """Horário de culto recorrente ("9h", "11h")."""

    service_time_id: int
    time: time
    name: str
    is_active: bool = True
    display_order: int = 0

    @property
    def label(self) -> str:
        return self.name or self.time.strftime("%H:%M")
