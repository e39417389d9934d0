from __future__ import annotations

from functools import wraps

from flask import current_app, flash, g, jsonify, redirect, render_template, request, session, url_for

from ..core.enums import Role
from ..core.exceptions import StoreUnavailableError

AUTH_EXTENSION = "activity_tracker.auth"


def init_auth(app, auth_service) -> None:
    """Give the access decorators a way to reload the logged-in user."""
    app.extensions[AUTH_EXTENSION] = auth_service


def current_user_view() -> dict:
    return {"full_name": session.get("name"), "role": session.get("role")}


def render_forbidden():
    return render_template("403.html", current_user=current_user_view()), 403


def home_endpoint_for(role: str | None) -> str:
    return "admin_dashboard" if role == Role.ADMIN.value else "tracker"


def _is_api() -> bool:
    return request.path.startswith("/api/")


def _unauthenticated(message: str = "Utilisateur non authentifié"):
    if _is_api():
        return jsonify({"success": False, "message": message}), 401
    flash(message, "warning")
    return redirect(url_for("login"))


def role_required(role: Role):
    """Only ``role`` may reach the view; the other role is sent to its own home.

    The user is reloaded on every request, so a deactivated account or a role
    change takes effect on sessions that are already open.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return _unauthenticated()

            try:
                s_user = current_app.extensions[AUTH_EXTENSION].current_user(session["user_id"])
            except StoreUnavailableError as e:
                if _is_api():
                    return jsonify({"success": False, "message": str(e)}), 503
                return render_template("tracker/unavailable.html"), 503

            if s_user is None:
                session.clear()
                return _unauthenticated("Session expirée ou compte désactivé. Veuillez vous reconnecter.")

            session["name"] = s_user.full_name
            session["role"] = s_user.role.value
            g.current_user = s_user

            if s_user.role != role:
                if _is_api():
                    return jsonify({"success": False, "message": "Accès refusé"}), 403
                return render_forbidden()

            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = role_required(Role.ADMIN)
employee_required = role_required(Role.EMPLOYEE)
