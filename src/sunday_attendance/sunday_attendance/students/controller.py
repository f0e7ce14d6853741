from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, flash, redirect, render_template, request, url_for

from ..auth.decorators import login_required
from ..common.datetime_utils import parse_optional_date
from ..container import Container
from ..core.enums import StudentStatus
from ..core.exceptions import AbsenceAlertError, NotFoundError, ValidationError
from .model import Student, StudentDraft

logger = logging.getLogger(__name__)


def _draft_from_form(form, current: Optional[Student] = None) -> StudentDraft:
    try:
        status = StudentStatus(form.get("status") or StudentStatus.ACTIVE.value)
    except ValueError:
        raise ValidationError("Status inválido")

    is_visitor = form.get("is_visitor") == "on"
    visitor_date = parse_optional_date(form.get("visitor_date"))
    if is_visitor and visitor_date is None and current is not None:
        visitor_date = current.visitor_date

    return StudentDraft(
        name=form.get("name", ""),
        is_visitor=is_visitor,
        status=status,
        visitor_date=visitor_date if is_visitor else None,
        date_of_birth=parse_optional_date(form.get("date_of_birth")),
        age_group=form.get("age_group"),
        notes=form.get("notes"),
    )


def register(app: Flask, container: Container) -> None:
    cache = container.query_cache

    @app.route("/manage-students", endpoint="manage_students")
    @login_required
    def manage_students():
        query = request.args.get("q", "")
        status_s = request.args.get("status", StudentStatus.ACTIVE.value)
        visitor_s = request.args.get("visitor", "")

        status = None
        if status_s:
            try:
                status = StudentStatus(status_s)
            except ValueError:
                flash("Filtro de status inválido", "warning")
        is_visitor = {"yes": True, "no": False}.get(visitor_s)

        students = container.student_service.search(query=query, status=status, is_visitor=is_visitor)
        return render_template(
            "students.html",
            students=students,
            query=query,
            selected_status=status_s,
            selected_visitor=visitor_s,
            statuses=StudentStatus,
            active_page="students",
        )

    @app.route("/manage-students/new", methods=["GET", "POST"], endpoint="student_new")
    @login_required
    def student_new():
        if request.method == "POST":
            try:
                student = cache.mutate(
                    lambda: container.student_service.create(_draft_from_form(request.form)),
                    invalidates=("students", "alerts"),
                )
                flash(f"Aluno {student.name} cadastrado.", "success")
                return redirect(url_for("student_detail", student_id=student.student_id))
            except ValidationError as e:
                flash(str(e), "danger")

        return render_template("student_form.html", student=None, form=request.form, statuses=StudentStatus)

    @app.route("/manage-students/<int:student_id>", endpoint="student_detail")
    @login_required
    def student_detail(student_id: int):
        student = container.student_service.get(student_id)
        timeline = container.attendance_service.student_timeline(student_id)

        alert = None
        if not student.is_visitor:
            try:
                alert = container.alert_service.alerts_by_student([student_id]).get(student_id)
            except AbsenceAlertError as e:
                logger.warning("Absence alert unavailable for student %s: %s", student_id, e)

        return render_template(
            "student_detail.html",
            student=student,
            timeline=timeline,
            alert=alert,
            active_page="students",
        )

    @app.route("/manage-students/<int:student_id>/edit", methods=["GET", "POST"], endpoint="student_edit")
    @login_required
    def student_edit(student_id: int):
        student = container.student_service.get(student_id)
        if request.method == "POST":
            try:
                cache.mutate(
                    lambda: container.student_service.update(student_id, _draft_from_form(request.form, student)),
                    invalidates=("students", "alerts"),
                )
                flash("Aluno atualizado.", "success")
                return redirect(url_for("student_detail", student_id=student_id))
            except ValidationError as e:
                flash(str(e), "danger")

        return render_template("student_form.html", student=student, form=request.form, statuses=StudentStatus)

    @app.route("/manage-students/<int:student_id>/delete", methods=["POST"], endpoint="student_delete")
    @login_required
    def student_delete(student_id: int):
        try:
            cache.mutate(lambda: container.student_service.delete(student_id), invalidates=("students", "alerts"))
            flash("Aluno marcado como inativo.", "success")
        except NotFoundError as e:
            flash(str(e), "danger")
        return redirect(url_for("manage_students"))

    @app.route("/manage-students/<int:student_id>/reactivate", methods=["POST"], endpoint="student_reactivate")
    @login_required
    def student_reactivate(student_id: int):
        try:
            cache.mutate(lambda: container.student_service.reactivate(student_id), invalidates=("students", "alerts"))
            flash("Aluno reativado.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        return redirect(url_for("student_detail", student_id=student_id))
