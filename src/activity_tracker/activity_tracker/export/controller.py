from __future__ import annotations

import io

from flask import Flask, flash, redirect, send_file, session, url_for
from loguru import logger

from ..common.datetime_utils import to_iso, today_local
from ..common.web import admin_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, StoreUnavailableError, ValidationError
from .csv_writer import write_export_csv


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/export.csv", endpoint="export_csv")
    @admin_required
    def export_csv():
        try:
            rows = container.export_service.build_rows_or_fail(current_role=Role(session.get("role")))
        except (ValidationError, AuthorizationError, StoreUnavailableError) as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_dashboard"))
        except Exception:
            logger.exception("Unexpected error while building export")
            flash("Erreur lors de l'export des données", "danger")
            return redirect(url_for("admin_dashboard"))

        output = io.BytesIO(write_export_csv(rows))
        return send_file(
            output,
            download_name=f"activites_employes_{to_iso(today_local())}.csv",
            as_attachment=True,
            mimetype="text/csv; charset=utf-8",
        )
