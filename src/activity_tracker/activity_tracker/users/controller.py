from __future__ import annotations

from datetime import timedelta

from flask import Flask, flash, redirect, render_template, request, session, url_for
from loguru import logger

from ..common.web import admin_required, home_endpoint_for
from ..container import Container
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .service import RESET_NOTICE, SessionUser


def register(app: Flask, container: Container) -> None:
    app.jinja_env.globals["csrf_token"] = lambda: ""

    def _start_session(s_user: SessionUser, remember: bool = False) -> None:
        session.clear()
        session.permanent = remember
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

        session["user_id"] = s_user.user_id
        session["email"] = s_user.email
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

    def _system_error(action: str, e: Exception) -> None:
        logger.exception(f"Unexpected error during {action}")
        if bool(app.config.get("DEBUG", False)):
            flash(f"Erreur système ({action}) : {e}", "danger")
        else:
            flash("Une erreur système est survenue. Veuillez réessayer.", "danger")

    @app.route("/", methods=["GET", "POST"], endpoint="login")
    def login():
        if "user_id" in session:
            return redirect(url_for(home_endpoint_for(session.get("role"))))

        if request.method == "POST":
            email = request.form.get("email", "")
            password = request.form.get("password", "")
            remember = bool(request.form.get("remember_me"))

            try:
                s_user = container.auth_service.authenticate(email, password)
                _start_session(s_user, remember)
                flash(f"Bienvenue {s_user.first_name} !", "success")
                return redirect(url_for(home_endpoint_for(s_user.role.value)))
            except (AuthenticationError, ValidationError) as e:
                flash(str(e), "danger")
            except Exception as e:
                _system_error("connexion", e)

        return render_template("login.html", email=request.form.get("email", ""))

    @app.route("/register", methods=["GET", "POST"], endpoint="register")
    def register_view():
        if "user_id" in session:
            return redirect(url_for(home_endpoint_for(session.get("role"))))

        if request.method == "POST":
            try:
                s_user = container.auth_service.register(
                    email=request.form.get("email", ""),
                    password=request.form.get("password", ""),
                    confirm_password=request.form.get("confirm_password", ""),
                    first_name=request.form.get("first_name", ""),
                    last_name=request.form.get("last_name", ""),
                    position=request.form.get("position", ""),
                )
                _start_session(s_user)
                flash("Compte créé avec succès !", "success")
                return redirect(url_for(home_endpoint_for(s_user.role.value)))
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception as e:
                _system_error("inscription", e)

        return render_template(
            "auth/register.html",
            positions=container.catalog.positions,
            form=request.form,
        )

    @app.route("/forgot-password", methods=["GET", "POST"], endpoint="forgot_password")
    def forgot_password():
        if "user_id" in session:
            return redirect(url_for(home_endpoint_for(session.get("role"))))

        if request.method == "POST":
            try:
                token = container.auth_service.create_reset_token(request.form.get("email", ""))
                if token:
                    # Mail delivery is handled outside the app.
                    logger.debug(f"Reset link: {url_for('reset_password', token=token, _external=True)}")
                flash(RESET_NOTICE, "info")
                return redirect(url_for("login"))
            except Exception as e:
                _system_error("réinitialisation", e)

        return render_template("auth/forgot_password.html")

    @app.route("/reset-password/<token>", methods=["GET", "POST"], endpoint="reset_password")
    def reset_password(token: str):
        if "user_id" in session:
            return redirect(url_for("login"))

        if request.method == "POST":
            try:
                container.auth_service.reset_password(
                    token,
                    request.form.get("password", ""),
                    request.form.get("confirm_password", ""),
                )
                flash("Votre mot de passe a été réinitialisé. Vous pouvez vous connecter.", "success")
                return redirect(url_for("login"))
            except ValidationError as e:
                flash(str(e), "danger")
            except Exception as e:
                _system_error("réinitialisation", e)

        return render_template("auth/reset_password.html", token=token)

    @app.route("/logout", endpoint="logout")
    def logout():
        session.clear()
        flash("Vous avez été déconnecté.", "info")
        return redirect(url_for("login"))

    @app.route("/admin", endpoint="admin_dashboard")
    @admin_required
    def admin_dashboard():
        return render_template(
            "admin/dashboard.html",
            users=container.user_service.list_roster(),
            stats=container.user_service.stats(),
            active_page="admin_dashboard",
        )

    @app.route("/admin/users/<int:user_id>/active", methods=["POST"], endpoint="toggle_user_active")
    @admin_required
    def toggle_user_active(user_id: int):
        is_active = request.form.get("is_active") == "1"
        try:
            container.user_service.set_active(
                current_role=Role(session.get("role")),
                user_id=user_id,
                is_active=is_active,
            )
            flash("Compte activé." if is_active else "Compte désactivé.", "success")
        except (ValidationError, AuthorizationError) as e:
            flash(str(e), "danger")
        except Exception as e:
            _system_error("mise à jour du statut", e)

        return redirect(url_for("admin_dashboard"))
