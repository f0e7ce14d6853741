from __future__ import annotations

import logging

from flask import Flask, abort, flash, redirect, render_template, request, session, url_for

from ..core.exceptions import AuthenticationError, AuthorizationError, DataAccessError
from ..container import Container
from .model import load_auth, save_auth

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/login", methods=["GET", "POST"], endpoint="login")
    def login():
        auth = load_auth(session)
        if auth.is_authenticated:
            return redirect(url_for("home"))

        if request.method == "POST":
            email = request.form.get("email", "")
            password = request.form.get("password", "")
            try:
                teacher = container.auth_service.sign_in(auth, email, password)
                session.clear()
                save_auth(session, auth)
                flash(f"Bem-vindo(a), {teacher.name}!", "success")
                return redirect(url_for("home"))
            except (AuthenticationError, AuthorizationError) as e:
                session.clear()
                save_auth(session, auth)
                flash(str(e), "danger")
            except DataAccessError as e:
                logger.error("Login failed: %s", e)
                save_auth(session, auth)
                flash("Erro ao conectar. Tente novamente.", "danger")

        return render_template(
            "login.html",
            dev_bypass=bool(app.config.get("DEV_BYPASS_AUTH", False)),
            email=request.form.get("email", ""),
        )

    @app.route("/dev-login", methods=["POST"], endpoint="dev_login")
    def dev_login():
        if not app.config.get("DEV_BYPASS_AUTH", False):
            abort(404)
        auth = load_auth(session)
        container.auth_service.dev_session(auth)
        session.clear()
        save_auth(session, auth)
        flash("Modo de desenvolvimento: login simulado.", "info")
        return redirect(url_for("home"))

    @app.route("/logout", endpoint="logout")
    def logout():
        auth = load_auth(session)
        container.auth_service.sign_out(auth)
        session.clear()
        save_auth(session, auth)
        flash("Você saiu do sistema.", "info")
        return redirect(url_for("login"))
