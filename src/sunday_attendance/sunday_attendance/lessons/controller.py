from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..auth.decorators import admin_required, login_required
from ..common.validators import optional_int
from ..container import Container
from ..core.enums import AssignmentRole, EventType
from ..core.exceptions import ValidationError
from .model import LessonDraft

logger = logging.getLogger(__name__)


def _lesson_draft(form) -> LessonDraft:
    return LessonDraft(
        name=form.get("name", ""),
        resource_url=form.get("resource_url"),
        description=form.get("description"),
    )


def register(app: Flask, container: Container) -> None:
    cache = container.query_cache

    @app.route("/lessons", endpoint="lessons")
    @login_required
    def lessons():
        items = cache.fetch(("lessons", "all"), container.lesson_service.list)
        upcoming = cache.fetch(("schedules", "upcoming"), container.schedule_service.upcoming)
        return render_template("lessons.html", lessons=items, upcoming=upcoming, active_page="lessons")

    @app.route("/lessons/new", methods=["GET", "POST"], endpoint="lesson_new")
    @admin_required
    def lesson_new():
        if request.method == "POST":
            try:
                lesson = cache.mutate(
                    lambda: container.lesson_service.create(_lesson_draft(request.form)),
                    invalidates=("lessons",),
                )
                flash("Lição criada.", "success")
                return redirect(url_for("lesson_detail", lesson_id=lesson.lesson_id))
            except ValidationError as e:
                flash(str(e), "danger")
        return render_template("lesson_form.html", lesson=None, form=request.form)

    @app.route("/lessons/<int:lesson_id>", endpoint="lesson_detail")
    @login_required
    def lesson_detail(lesson_id: int):
        detail = container.lesson_service.detail(lesson_id)
        teachers = cache.fetch(("teachers", "active"), container.teachers_repo.list_active)
        return render_template(
            "lesson_detail.html",
            detail=detail,
            teachers=teachers,
            lessons=cache.fetch(("lessons", "all"), container.lesson_service.list),
            event_types=EventType,
            active_page="lessons",
        )

    @app.route("/lessons/<int:lesson_id>/edit", methods=["GET", "POST"], endpoint="lesson_edit")
    @admin_required
    def lesson_edit(lesson_id: int):
        lesson = container.lesson_service.get(lesson_id)
        if request.method == "POST":
            try:
                cache.mutate(
                    lambda: container.lesson_service.update(lesson_id, _lesson_draft(request.form)),
                    invalidates=("lessons", "schedules"),
                )
                flash("Lição atualizada.", "success")
                return redirect(url_for("lesson_detail", lesson_id=lesson_id))
            except ValidationError as e:
                flash(str(e), "danger")
        return render_template("lesson_form.html", lesson=lesson, form=request.form)

    @app.route("/lessons/<int:lesson_id>/delete", methods=["POST"], endpoint="lesson_delete")
    @admin_required
    def lesson_delete(lesson_id: int):
        try:
            cache.mutate(lambda: container.lesson_service.delete(lesson_id), invalidates=("lessons", "schedules"))
            flash("Lição removida.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
            return redirect(url_for("lesson_detail", lesson_id=lesson_id))
        return redirect(url_for("lessons"))

    def back():
        lesson_id = optional_int(request.form.get("lesson_id"))
        if lesson_id:
            return redirect(url_for("lesson_detail", lesson_id=lesson_id))
        return redirect(url_for("lessons"))

    @app.route("/schedules/<int:schedule_id>/edit", methods=["POST"], endpoint="schedule_edit")
    @admin_required
    def schedule_edit(schedule_id: int):
        try:
            event_type_s = request.form.get("event_type")
            try:
                event_type = EventType(event_type_s) if event_type_s else None
            except ValueError:
                raise ValidationError("Tipo de evento inválido")
            cache.mutate(
                lambda: container.schedule_service.update(
                    schedule_id,
                    lesson_id=optional_int(request.form.get("new_lesson_id")),
                    notes=request.form.get("notes"),
                    is_cancelled=request.form.get("is_cancelled") == "on",
                    event_type=event_type,
                ),
                invalidates=("schedules", "lessons"),
            )
            flash("Aula atualizada.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        return back()

    @app.route("/schedules/<int:schedule_id>/teachers", methods=["POST"], endpoint="schedule_teachers")
    @admin_required
    def schedule_teachers(schedule_id: int):
        try:
            teacher_ids = [int(t) for t in request.form.getlist("teacher_ids") if str(t).isdigit()]
            cache.mutate(
                lambda: container.schedule_service.replace_teachers(schedule_id, teacher_ids),
                invalidates=("schedules",),
            )
            flash("Professores atualizados.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        return back()

    @app.route("/schedules/<int:schedule_id>/teachers/add", methods=["POST"], endpoint="schedule_teacher_add")
    @admin_required
    def schedule_teacher_add(schedule_id: int):
        try:
            teacher_id = optional_int(request.form.get("teacher_id"))
            if not teacher_id:
                raise ValidationError("Selecione um professor")
            try:
                role = AssignmentRole(request.form.get("role") or AssignmentRole.TEACHER.value)
            except ValueError:
                raise ValidationError("Função inválida")
            cache.mutate(
                lambda: container.schedule_service.add_teacher(schedule_id, teacher_id, role=role),
                invalidates=("schedules",),
            )
            flash("Professor adicionado.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        return back()

    @app.route(
        "/schedules/<int:schedule_id>/teachers/<int:teacher_id>/remove",
        methods=["POST"],
        endpoint="schedule_teacher_remove",
    )
    @admin_required
    def schedule_teacher_remove(schedule_id: int, teacher_id: int):
        try:
            cache.mutate(
                lambda: container.schedule_service.remove_teacher(schedule_id, teacher_id),
                invalidates=("schedules",),
            )
            flash("Professor removido.", "success")
        except ValidationError as e:
            flash(str(e), "danger")
        return back()
