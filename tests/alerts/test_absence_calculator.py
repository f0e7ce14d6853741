from datetime import date

from src.sunday_attendance.sunday_attendance.alerts.calculator import calculate_absence_alerts
from src.sunday_attendance.sunday_attendance.attendance.model import DatedAttendance
from src.sunday_attendance.sunday_attendance.core.enums import AttendanceStatus

A = AttendanceStatus.ABSENT
P = AttendanceStatus.PRESENT


def _rows(student_id, *pairs):
    return [DatedAttendance(student_id=student_id, date=date.fromisoformat(d), status=s) for d, s in pairs]


def test_no_records_before_cutoff_means_no_alert():
    rows = _rows(1, ("2025-11-23", A), ("2025-11-30", A), ("2025-12-07", A))
    assert calculate_absence_alerts([1], rows, threshold=3, cutoff=date(2025, 11, 23)) == []


def test_most_recent_record_present_means_no_alert():
    rows = _rows(1, ("2025-11-16", P), ("2025-11-09", A), ("2025-11-02", A), ("2025-10-26", A))
    assert calculate_absence_alerts([1], rows, threshold=3, cutoff=date(2025, 11, 23)) == []


def test_three_absences_then_present_gives_count_three():
    rows = _rows(1, ("2025-11-16", A), ("2025-11-09", A), ("2025-11-02", A), ("2025-10-26", P))
    alerts = calculate_absence_alerts([1], rows, threshold=3, cutoff=date(2025, 11, 23))
    assert len(alerts) == 1
    assert alerts[0].student_id == 1
    assert alerts[0].absence_count == 3
    assert alerts[0].absence_dates == (date(2025, 11, 2), date(2025, 11, 9), date(2025, 11, 16))


def test_two_absences_below_threshold():
    rows = _rows(1, ("2025-11-16", A), ("2025-11-09", A))
    assert calculate_absence_alerts([1], rows, threshold=3, cutoff=date(2025, 11, 23)) == []


def test_unmarked_sundays_are_skipped():
    rows = _rows(1, ("2025-11-17", A), ("2025-10-06", A), ("2025-09-29", A))
    alerts = calculate_absence_alerts([1], rows, threshold=3, cutoff=date(2025, 11, 24))
    assert len(alerts) == 1
    assert alerts[0].absence_count == 3
    assert alerts[0].first_absence_date == date(2025, 9, 29)
    assert alerts[0].last_absence_date == date(2025, 11, 17)


def test_presence_at_any_service_wins_for_the_date():
    rows = _rows(
        1,
        ("2025-11-16", A),
        ("2025-11-16", P),
        ("2025-11-09", A),
        ("2025-11-02", A),
        ("2025-10-26", A),
    )
    assert calculate_absence_alerts([1], rows, threshold=3, cutoff=date(2025, 11, 23)) == []


def test_late_and_excused_count_as_attended():
    rows = _rows(1, ("2025-11-16", AttendanceStatus.EXCUSED), ("2025-11-09", A), ("2025-11-02", A), ("2025-10-26", A))
    assert calculate_absence_alerts([1], rows, threshold=3, cutoff=date(2025, 11, 23)) == []


def test_empty_student_ids_gives_empty_list():
    assert calculate_absence_alerts([], _rows(1, ("2025-11-16", A)), threshold=1) == []


def test_same_snapshot_gives_identical_results_in_input_order():
    rows = _rows(2, ("2025-11-16", A), ("2025-11-09", A)) + _rows(1, ("2025-11-16", A), ("2025-11-09", A))
    first = calculate_absence_alerts([2, 1], rows, threshold=2, cutoff=date(2025, 11, 23))
    second = calculate_absence_alerts([2, 1], rows, threshold=2, cutoff=date(2025, 11, 23))
    assert first == second
    assert [a.student_id for a in first] == [2, 1]


def test_alert_serializes_iso_dates():
    rows = _rows(7, ("2025-11-16", A))
    alert = calculate_absence_alerts([7], rows, threshold=1, cutoff=date(2025, 11, 23))[0]
    assert alert.to_dict() == {
        "student_id": 7,
        "absence_count": 1,
        "absence_dates": ["2025-11-16"],
        "first_absence_date": "2025-11-16",
        "last_absence_date": "2025-11-16",
    }
