"""Example: drive the service layer without Flask.

Controllers stay thin; the week rules live in ``TimesheetService``.
"""

import importlib
from datetime import date

from config import get_settings_module

from src.activity_tracker.activity_tracker.container import build_container
from src.activity_tracker.activity_tracker.core.enums import TimeClassification, Weekday
from src.activity_tracker.activity_tracker.core.exceptions import ValidationError
from src.activity_tracker.activity_tracker.timesheets.model import AllocationRow, SessionDraft


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, secret_key=settings.SECRET_KEY)

    user = container.users_repo.get_by_email("jean.dupont@example.com")
    if user is None:
        raise SystemExit("Run scripts/seed_db.py first.")

    draft = SessionDraft(
        anchor=date(2024, 10, 14),
        rows=(
            AllocationRow(
                client="Orange",
                activity="Service projet",
                time_classification=TimeClassification.PRESENT,
                values_by_weekday={Weekday.MONDAY: 0.6, Weekday.TUESDAY: 1.0},
            ),
            AllocationRow(
                client="SFR",
                activity="Avant-vente",
                time_classification=TimeClassification.PRESENT,
                values_by_weekday={Weekday.MONDAY: 0.4},
            ),
        ),
    )

    try:
        result = container.timesheet_service.submit_week(user_id=user.user_id, draft=draft)
        print(f"Week {result.bounds.iso_week}: {result.filled_days} day(s) saved")
    except ValidationError as e:
        print(f"Rejected ({e.kind.value}): {e}")

    view = container.timesheet_service.load_week(user_id=user.user_id, anchor=draft.anchor, editing=True)
    for row in view.draft.rows:
        print(row.client, row.activity, {d.value: v for d, v in row.values_by_weekday.items()})


if __name__ == "__main__":
    main()
