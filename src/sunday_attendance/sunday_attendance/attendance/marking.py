"""In-progress marking state, kept in the Flask session between requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_text
from ..core.enums import AttendanceStatus, MarkingMethod
from ..core.exceptions import ValidationError
from ..students.model import Student
from .model import AttendanceEntry

SESSION_KEY = "marking"


@dataclass(frozen=True)
class RosterEntry:
    student_id: int
    name: str
    is_visitor: bool = False

    @classmethod
    def from_student(cls, student: Student) -> "RosterEntry":
        return cls(student_id=student.student_id, name=student.name, is_visitor=student.is_visitor)


@dataclass(frozen=True)
class Mark:
    status: AttendanceStatus
    notes: Optional[str] = None


@dataclass
class MarkingSession:
    date: date
    service_time_id: int
    method: MarkingMethod = MarkingMethod.SWIPE
    roster: List[RosterEntry] = field(default_factory=list)
    marks: Dict[int, Mark] = field(default_factory=dict)
    # (student_id, mark before the change) per mark, oldest first
    history: List[Tuple[int, Optional[Mark]]] = field(default_factory=list)
    completed: bool = False
    dirty: bool = False

    @classmethod
    def start(
        cls,
        *,
        on: date,
        service_time_id: int,
        students: Sequence[Student],
        method: MarkingMethod = MarkingMethod.SWIPE,
        existing: Sequence[AttendanceEntry] = (),
    ) -> "MarkingSession":
        """New session; ``existing`` pre-fills marks already saved for the schedule."""

        session = cls(
            date=on,
            service_time_id=int(service_time_id),
            method=method,
            roster=[RosterEntry.from_student(s) for s in students],
        )
        known = {e.student_id for e in session.roster}
        for entry in existing:
            if entry.student_id in known:
                session.marks[entry.student_id] = Mark(status=entry.status, notes=entry.notes)
        return session

    def _entry(self, student_id: int) -> RosterEntry:
        for entry in self.roster:
            if entry.student_id == int(student_id):
                return entry
        raise ValidationError("Aluno não está na lista desta aula")

    def mark(self, student_id: int, status: AttendanceStatus, *, notes: Optional[str] = None) -> None:
        entry = self._entry(student_id)
        self.history.append((entry.student_id, self.marks.get(entry.student_id)))
        self.marks[entry.student_id] = Mark(status=AttendanceStatus(status), notes=optional_text(notes))
        self.completed = False
        self.dirty = True

    def unmark(self, student_id: int) -> None:
        entry = self._entry(student_id)
        if entry.student_id in self.marks:
            self.history.append((entry.student_id, self.marks.pop(entry.student_id)))
            self.dirty = True

    def undo(self) -> Optional[int]:
        """Revert the last change; returns the affected student id."""

        if not self.history:
            return None
        student_id, previous = self.history.pop()
        if previous is None:
            self.marks.pop(student_id, None)
        else:
            self.marks[student_id] = previous
        self.dirty = True
        return student_id

    def add_visitor(self, visitor: Student, *, notes: Optional[str] = None) -> None:
        """Put a visitor on the roster and mark them present."""

        if not any(e.student_id == visitor.student_id for e in self.roster):
            self.roster.append(RosterEntry.from_student(visitor))
        self.mark(visitor.student_id, AttendanceStatus.PRESENT, notes=notes)

    def status_of(self, student_id: int) -> Optional[AttendanceStatus]:
        mark = self.marks.get(int(student_id))
        return mark.status if mark else None

    def next_unmarked(self) -> Optional[RosterEntry]:
        for entry in self.roster:
            if entry.student_id not in self.marks:
                return entry
        return None

    @property
    def marked_count(self) -> int:
        return len(self.marks)

    @property
    def total(self) -> int:
        return len(self.roster)

    @property
    def is_finished(self) -> bool:
        return self.total > 0 and self.marked_count >= self.total

    @property
    def has_unsaved_marks(self) -> bool:
        return bool(self.marks) and self.dirty

    def count(self, status: AttendanceStatus) -> int:
        return sum(1 for m in self.marks.values() if m.status == status)

    def entries(self) -> List[AttendanceEntry]:
        """Marked students in roster order."""

        return [
            AttendanceEntry(student_id=e.student_id, status=self.marks[e.student_id].status, notes=self.marks[e.student_id].notes)
            for e in self.roster
            if e.student_id in self.marks
        ]

    def complete(self) -> None:
        self.completed = True
        self.dirty = False
        self.history.clear()

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "service_time_id": self.service_time_id,
            "method": self.method.value,
            "roster": [[e.student_id, e.name, e.is_visitor] for e in self.roster],
            "marks": {str(sid): [m.status.value, m.notes] for sid, m in self.marks.items()},
            "history": [[sid, [p.status.value, p.notes] if p else None] for sid, p in self.history],
            "completed": self.completed,
            "dirty": self.dirty,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MarkingSession":
        def _mark(raw) -> Optional[Mark]:
            if not raw:
                return None
            return Mark(status=AttendanceStatus(raw[0]), notes=raw[1])

        return cls(
            date=parse_iso_date(data["date"]),
            service_time_id=int(data["service_time_id"]),
            method=MarkingMethod(data.get("method", MarkingMethod.SWIPE.value)),
            roster=[RosterEntry(student_id=int(r[0]), name=r[1], is_visitor=bool(r[2])) for r in data.get("roster", [])],
            marks={int(sid): _mark(raw) for sid, raw in data.get("marks", {}).items()},
            history=[(int(sid), _mark(raw)) for sid, raw in data.get("history", [])],
            completed=bool(data.get("completed", False)),
            dirty=bool(data.get("dirty", False)),
        )


def load_session(store) -> Optional[MarkingSession]:
    data = store.get(SESSION_KEY)
    return MarkingSession.from_dict(data) if data else None


def save_session(store, marking: MarkingSession) -> None:
    store[SESSION_KEY] = marking.to_dict()


def clear_session(store) -> None:
    store.pop(SESSION_KEY, None)
