from __future__ import annotations

import logging
from typing import Dict, List, Optional

from flask import Flask, flash, g, redirect, render_template, request, session, url_for

from ..alerts.model import AbsenceAlert
from ..auth.decorators import current_teacher, login_required
from ..common.datetime_utils import parse_iso_date, previous_sunday
from ..common.datetime_utils import today as current_date
from ..common.search import fuzzy_filter
from ..common.validators import optional_int, require_positive_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT, HISTORY_PAGE_SIZE, STALE_TIME_MEDIUM
from ..core.enums import AttendanceStatus, MarkingMethod, NavigationState
from ..core.exceptions import AbsenceAlertError, DataAccessError, NotFoundError, ValidationError
from .marking import MarkingSession, clear_session, load_session, save_session
from .navigation import load_guard, safe_target, save_guard

logger = logging.getLogger(__name__)


def _parse_status(value: Optional[str]) -> AttendanceStatus:
    try:
        return AttendanceStatus((value or "").strip())
    except ValueError:
        raise ValidationError("Status de presença inválido")


def register(app: Flask, container: Container) -> None:
    cache = container.query_cache

    def service_times():
        return cache.fetch(("service_times",), container.service_times_repo.list_active)

    def alerts_for(marking: MarkingSession) -> Dict[int, AbsenceAlert]:
        ids = [e.student_id for e in marking.roster if not e.is_visitor]
        try:
            return cache.fetch(
                ("alerts", marking.date, tuple(ids)),
                lambda: container.alert_service.alerts_by_student(ids, cutoff=marking.date),
                stale_time=STALE_TIME_MEDIUM,
            )
        except AbsenceAlertError as e:
            logger.warning("Absence alerts unavailable: %s", e)
            return {}

    def require_marking() -> Optional[MarkingSession]:
        marking = load_session(session)
        if marking is None:
            flash("Selecione a data e o horário antes de marcar presença.", "warning")
        return marking

    def back_to_marking(marking: MarkingSession):
        if marking.method == MarkingMethod.SEARCH:
            return redirect(url_for("search_marking", q=request.form.get("q", "")))
        return redirect(url_for("marking"))

    @app.before_request
    def block_unsaved_navigation():
        if request.method != "GET" or current_teacher() is None:
            return None
        marking = load_session(session)
        guard = load_guard(session)
        before = guard.state
        state = guard.evaluate(request.path, has_unsaved_marks=bool(marking and marking.has_unsaved_marks))
        if state != before:
            save_guard(session, guard)
        if state == NavigationState.BLOCKED and not guard.is_allowed(request.path):
            target = request.full_path.rstrip("?") if request.query_string else request.path
            return redirect(url_for("marking_unsaved", next=target))
        return None

    @app.route("/", endpoint="home")
    @login_required
    def home():
        upcoming = cache.fetch(("schedules", "upcoming"), container.schedule_service.upcoming)
        alerts: List[AbsenceAlert] = []
        names: Dict[int, str] = {}
        try:
            alerts = cache.fetch(("alerts", "active"), container.alert_service.alerts_for_active_students, stale_time=STALE_TIME_MEDIUM)
            names = {s.student_id: s.name for s in cache.fetch(("students", "active"), container.student_service.list_active)}
        except AbsenceAlertError as e:
            logger.warning("Absence alerts unavailable: %s", e)
            flash("Não foi possível calcular os alertas de falta.", "warning")

        return render_template(
            "home.html",
            teacher=g.teacher,
            upcoming=upcoming,
            alerts=alerts,
            student_names=names,
            marking=load_session(session),
            active_page="home",
        )

    @app.route("/date-selection", methods=["GET", "POST"], endpoint="date_selection")
    @login_required
    def date_selection():
        if request.method == "POST":
            try:
                on = parse_iso_date(request.form.get("date") or "")
                service_time_id = require_positive_int(request.form.get("service_time_id"), "Horário")
                try:
                    method = MarkingMethod(request.form.get("method") or MarkingMethod.SWIPE.value)
                except ValueError:
                    raise ValidationError("Modo de marcação inválido")
                if on > current_date():
                    raise ValidationError("Não é possível marcar presença para uma data futura")

                marking = container.attendance_service.start_marking(on=on, service_time_id=service_time_id, method=method)
                save_session(session, marking)
                if method == MarkingMethod.SEARCH:
                    return redirect(url_for("search_marking"))
                return redirect(url_for("marking"))
            except ValidationError as e:
                flash(str(e), "danger")

        default_date = previous_sunday(current_date())
        recent_dates = cache.fetch(("schedules", "dates"), container.schedule_service.dates)
        return render_template(
            "date_selection.html",
            default_date=default_date.isoformat(),
            service_times=service_times(),
            recent_dates=recent_dates[:8],
            active_page="date_selection",
        )

    @app.route("/marking", endpoint="marking")
    @login_required
    def marking():
        marking = require_marking()
        if marking is None:
            return redirect(url_for("date_selection"))
        if marking.method == MarkingMethod.SEARCH:
            return redirect(url_for("search_marking"))

        return render_template(
            "marking_swipe.html",
            marking=marking,
            current=marking.next_unmarked(),
            alerts=alerts_for(marking),
            service_times={st.service_time_id: st for st in service_times()},
            statuses=AttendanceStatus,
            active_page="marking",
        )

    @app.route("/search-marking", endpoint="search_marking")
    @login_required
    def search_marking():
        marking = require_marking()
        if marking is None:
            return redirect(url_for("date_selection"))
        if marking.method != MarkingMethod.SEARCH:
            marking.method = MarkingMethod.SEARCH
            save_session(session, marking)

        query = request.args.get("q", "")
        visitors = []
        if query.strip():
            visitors = [
                v
                for v in container.student_service.search(query=query, is_visitor=True)
                if v.is_active and v.student_id not in {e.student_id for e in marking.roster}
            ]

        return render_template(
            "marking_search.html",
            marking=marking,
            query=query,
            results=fuzzy_filter(marking.roster, query, key=lambda e: e.name),
            visitors=visitors,
            alerts=alerts_for(marking),
            service_times={st.service_time_id: st for st in service_times()},
            statuses=AttendanceStatus,
            active_page="marking",
        )

    @app.route("/marking/mark", methods=["POST"], endpoint="marking_mark")
    @login_required
    def marking_mark():
        marking = require_marking()
        if marking is None:
            return redirect(url_for("date_selection"))
        try:
            student_id = require_positive_int(request.form.get("student_id"), "Aluno")
            marking.mark(student_id, _parse_status(request.form.get("status")), notes=request.form.get("notes"))
            save_session(session, marking)
        except ValidationError as e:
            flash(str(e), "danger")
        return back_to_marking(marking)

    @app.route("/marking/undo", methods=["POST"], endpoint="marking_undo")
    @login_required
    def marking_undo():
        marking = require_marking()
        if marking is None:
            return redirect(url_for("date_selection"))
        if marking.undo() is None:
            flash("Nada para desfazer.", "info")
        save_session(session, marking)
        return back_to_marking(marking)

    @app.route("/marking/visitor", methods=["POST"], endpoint="marking_visitor")
    @login_required
    def marking_visitor():
        marking = require_marking()
        if marking is None:
            return redirect(url_for("date_selection"))
        try:
            notes = request.form.get("notes")
            existing_id = optional_int(request.form.get("student_id"))
            if existing_id:
                visitor = container.student_service.get(existing_id)
                if not visitor.is_visitor:
                    raise ValidationError("Aluno selecionado não é visitante")
            else:
                visitor = cache.mutate(
                    lambda: container.student_service.add_visitor(request.form.get("name", ""), notes=notes),
                    invalidates=("students",),
                )
            marking.add_visitor(visitor, notes=notes)
            save_session(session, marking)
            flash(f"Visitante {visitor.name} marcado como presente.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        except DataAccessError as e:
            logger.error("Adding visitor failed: %s", e)
            flash("Erro ao salvar visitante. Tente novamente.", "danger")
        return back_to_marking(marking)

    @app.route("/marking/complete", methods=["POST"], endpoint="marking_complete")
    @login_required
    def marking_complete():
        marking = require_marking()
        if marking is None:
            return redirect(url_for("date_selection"))
        try:
            saved = cache.mutate(
                lambda: container.attendance_service.save_marking(marking, marked_by=g.teacher.teacher_id),
                invalidates=("schedules", "attendance", "alerts"),
            )
        except ValidationError as e:
            flash(str(e), "danger")
            return back_to_marking(marking)
        except DataAccessError as e:
            logger.error("Saving attendance failed: %s", e)
            save_session(session, marking)
            flash("Erro ao salvar presença. Suas marcações foram mantidas, tente novamente.", "danger")
            return back_to_marking(marking)

        clear_session(session)
        return render_template(
            "completion.html",
            marking=marking,
            saved=saved,
            present=marking.count(AttendanceStatus.PRESENT),
            absent=marking.count(AttendanceStatus.ABSENT),
            active_page="marking",
        )

    @app.route("/marking/unsaved", endpoint="marking_unsaved")
    @login_required
    def marking_unsaved():
        marking = load_session(session)
        target = safe_target(request.args.get("next"))
        guard = load_guard(session)
        if marking is None or not marking.has_unsaved_marks:
            guard.reset()
            save_guard(session, guard)
            return redirect(target)
        if guard.state != NavigationState.BLOCKED:
            guard.block()
            save_guard(session, guard)
        return render_template("unsaved_changes.html", marking=marking, target=target)

    @app.route("/marking/discard", methods=["POST"], endpoint="marking_discard")
    @login_required
    def marking_discard():
        guard = load_guard(session)
        if guard.state == NavigationState.BLOCKED:
            guard.proceed()
        save_guard(session, guard)
        clear_session(session)
        flash("Marcações descartadas.", "info")
        return redirect(safe_target(request.form.get("next")))

    @app.route("/marking/continue", methods=["POST"], endpoint="marking_continue")
    @login_required
    def marking_continue():
        guard = load_guard(session)
        if guard.state == NavigationState.BLOCKED:
            guard.stay()
            save_guard(session, guard)
        marking = load_session(session)
        if marking is None:
            return redirect(url_for("date_selection"))
        return back_to_marking(marking)

    @app.route("/history", endpoint="history")
    @login_required
    def history():
        limit = optional_int(request.args.get("limit")) or DEFAULT_HISTORY_LIMIT
        service_time_id = optional_int(request.args.get("service_time_id"))

        groups = cache.fetch(
            ("attendance", "history", limit, service_time_id),
            lambda: container.attendance_service.history(limit=limit, service_time_id=service_time_id),
        )
        students = cache.fetch(("students", "active"), container.student_service.list_active)

        return render_template(
            "history.html",
            groups=groups,
            limit=limit,
            next_limit=limit + HISTORY_PAGE_SIZE,
            has_more=len(groups) >= limit,
            service_times=service_times(),
            selected_service_time_id=service_time_id,
            students=students,
            statuses=AttendanceStatus,
            active_page="history",
        )

    def back_to_history():
        return redirect(
            url_for(
                "history",
                limit=request.form.get("limit") or DEFAULT_HISTORY_LIMIT,
                service_time_id=request.form.get("service_time_id") or None,
            )
        )

    @app.route("/history/records/<int:record_id>/edit", methods=["POST"], endpoint="history_edit")
    @login_required
    def history_edit(record_id: int):
        try:
            status = _parse_status(request.form.get("status"))
            cache.mutate(
                lambda: container.attendance_service.edit_record(record_id, status=status, notes=request.form.get("notes")),
                invalidates=("attendance", "alerts"),
            )
            flash("Presença atualizada.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        return back_to_history()

    @app.route("/history/records/<int:record_id>/delete", methods=["POST"], endpoint="history_delete")
    @login_required
    def history_delete(record_id: int):
        try:
            cache.mutate(
                lambda: container.attendance_service.delete_record(record_id),
                invalidates=("attendance", "alerts", "schedules"),
            )
            flash("Registro removido.", "success")
        except NotFoundError as e:
            flash(str(e), "danger")
        return back_to_history()

    @app.route("/history/schedules/<int:schedule_id>/records", methods=["POST"], endpoint="history_add")
    @login_required
    def history_add(schedule_id: int):
        try:
            student_id = require_positive_int(request.form.get("student_id"), "Aluno")
            status = _parse_status(request.form.get("status"))
            cache.mutate(
                lambda: container.attendance_service.add_record(
                    schedule_id=schedule_id,
                    student_id=student_id,
                    status=status,
                    notes=request.form.get("notes"),
                    marked_by=g.teacher.teacher_id,
                ),
                invalidates=("attendance", "alerts", "schedules"),
            )
            flash("Presença adicionada.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        return back_to_history()
