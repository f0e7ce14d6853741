from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import flash, g, redirect, render_template, session, url_for

from ..teachers.model import Teacher
from .model import load_auth


def current_teacher() -> Optional[Teacher]:
    auth = load_auth(session)
    return auth.teacher if auth.is_authenticated else None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        teacher = current_teacher()
        if teacher is None:
            flash("Faça login para continuar.", "warning")
            return redirect(url_for("login"))
        g.teacher = teacher
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        teacher = current_teacher()
        if teacher is None:
            return redirect(url_for("login"))
        if not teacher.is_admin:
            return render_template("403.html"), 403
        g.teacher = teacher
        return view(*args, **kwargs)

    return wrapper
