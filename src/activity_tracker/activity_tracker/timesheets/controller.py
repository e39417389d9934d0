from __future__ import annotations

from datetime import timedelta

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for
from loguru import logger

from ..common.datetime_utils import parse_iso_date, to_iso, today_local
from ..common.web import employee_required
from ..container import Container
from ..core.enums import TimeClassification, Weekday
from ..core.exceptions import AuthenticationError, DomainError, StoreUnavailableError, ValidationError
from .forms import apply_grid_action, draft_from_form, draft_from_json, week_view_to_json
from .model import SessionDraft, WeekView
from .reconciler import WEEKDAY_LABELS, compute_week_bounds

MONTH_NAMES = [
    "Janvier", "Février", "Mars", "Avril", "Mai", "Juin",
    "Juillet", "Août", "Septembre", "Octobre", "Novembre", "Décembre",
]


def register(app: Flask, container: Container) -> None:
    service = container.timesheet_service

    def _anchor_from_args():
        raw = request.args.get("week") or request.args.get("date")
        if not raw:
            return today_local()
        try:
            return parse_iso_date(raw)
        except ValueError:
            flash("Date invalide, affichage de la semaine courante.", "warning")
            return today_local()

    def _render(view: WeekView, draft: SessionDraft, status: int = 200):
        bounds = view.bounds
        return (
            render_template(
                "tracker/week.html",
                view=view,
                draft=draft,
                bounds=bounds,
                weekdays=Weekday.ordered(),
                weekday_labels=WEEKDAY_LABELS,
                classifications=TimeClassification,
                catalog=container.catalog,
                month_name=MONTH_NAMES[view.month.month - 1],
                prev_week=to_iso(bounds.monday - timedelta(days=7)),
                next_week=to_iso(bounds.monday + timedelta(days=7)),
                today=today_local(),
                active_page="tracker",
            ),
            status,
        )

    @app.route("/suivi-des-activites", methods=["GET"], endpoint="tracker")
    @employee_required
    def tracker():
        editing = request.args.get("edit") == "1"
        try:
            view = service.load_week(user_id=int(session["user_id"]), anchor=_anchor_from_args(), editing=editing)
        except StoreUnavailableError as e:
            flash(str(e), "danger")
            return render_template("tracker/unavailable.html"), 503
        return _render(view, view.draft)

    @app.route("/suivi-des-activites", methods=["POST"], endpoint="tracker_submit")
    @employee_required
    def tracker_submit():
        user_id = int(session["user_id"])
        action = request.form.get("action", "submit")
        try:
            draft = draft_from_form(request.form, default_anchor=today_local())
        except ValidationError as e:
            flash(str(e), "warning")
            return redirect(url_for("tracker"))

        if action != "submit":
            draft = apply_grid_action(draft, action)
            try:
                view = service.load_week(user_id=user_id, anchor=draft.anchor, editing=False)
            except StoreUnavailableError:
                return render_template("tracker/unavailable.html"), 503
            return _render(view, draft)

        try:
            result = service.submit_week(user_id=user_id, draft=draft)
            flash(
                f"Merci ! Vos données ont été enregistrées pour la semaine {result.bounds.iso_week} "
                f"({result.filled_days} jour(s) renseigné(s)).",
                "success",
            )
            return redirect(url_for("tracker", week=to_iso(draft.anchor)))
        except AuthenticationError as e:
            flash(str(e), "danger")
            return redirect(url_for("login"))
        except DomainError as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception("Unexpected error while saving week")
            flash("Erreur lors de l'enregistrement des données", "danger")

        # Keep the posted grid so the user can fix it and resubmit.
        try:
            view = service.load_week(user_id=user_id, anchor=draft.anchor, editing=False)
        except StoreUnavailableError:
            return render_template("tracker/unavailable.html"), 503
        return _render(view, draft, status=400)

    @app.route("/api/week", methods=["GET"], endpoint="api_week")
    @employee_required
    def api_week():
        try:
            view = service.load_week(
                user_id=int(session["user_id"]),
                anchor=_anchor_from_args(),
                editing=request.args.get("edit") == "1",
            )
        except StoreUnavailableError as e:
            return jsonify({"success": False, "message": str(e)}), 503
        return jsonify({"success": True, "week": week_view_to_json(view)}), 200

    @app.route("/api/week", methods=["POST"], endpoint="api_week_submit")
    @employee_required
    def api_week_submit():
        try:
            draft = draft_from_json(request.get_json(silent=True) or {}, default_anchor=today_local())
            result = service.submit_week(user_id=int(session["user_id"]), draft=draft)
        except ValidationError as e:
            body = {"success": False, "kind": e.kind.value, "message": str(e)}
            if e.mismatches:
                body["mismatches"] = [{"weekday": d.value, "total": total} for d, total in e.mismatches]
            return jsonify(body), 400
        except AuthenticationError as e:
            return jsonify({"success": False, "message": str(e)}), 401
        except StoreUnavailableError as e:
            return jsonify({"success": False, "message": str(e)}), 503
        except Exception:
            logger.exception("Unexpected error while saving week (api)")
            return jsonify({"success": False, "message": "Erreur lors de l'enregistrement des données"}), 500

        bounds = compute_week_bounds(draft.anchor)
        return jsonify(
            {
                "success": True,
                "iso_week": bounds.iso_week,
                "filled_days": result.filled_days,
                "days": {k: v.to_dict() for k, v in result.days.items()},
            }
        ), 200
