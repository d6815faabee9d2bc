"""Reminder schedule ahead of a predicted period."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from naaricare.cycle.config_loader import CycleEngineConfig, get_cycle_config
from naaricare.cycle.insights import CycleInsights
from naaricare.cycle.prediction import CyclePrediction
from naaricare.cycle.records import CycleSettings

HIDDEN_REMINDER_TEXT = "🌸 NaariCare Reminder"

_MESSAGES = {
    1: "Your period may start tomorrow. This is an estimate 🌸",
    2: "Your period may start in 2 days. Take care 💗",
    3: "Your period may start in 3 days. Stay prepared 🩷",
}


@dataclass
class NotificationEntry:
    date: date
    message: str
    days_before: int


def reminder_message(days_before: int, is_regular: bool = True) -> str:
    message = _MESSAGES.get(
        days_before,
        f"Your period may start in about {days_before} days (estimate) 🌸",
    )
    if not is_regular:
        # Softer wording when the prediction itself is shaky
        message = message.replace("may", "might", 1)
    return message


def display_text(entry: NotificationEntry, settings: CycleSettings) -> str:
    """Text to show on a lock screen, honouring the privacy toggle."""
    return HIDDEN_REMINDER_TEXT if settings.hide_notification_text else entry.message


class NotificationScheduler:
    """Turn a prediction into dated reminders.

    Irregular cycles always get the wider irregular offsets, whatever the
    user stored, since their predictions are less reliable.  Entries keep
    the order of the offsets and past dates are dropped.
    """

    def __init__(self, config: CycleEngineConfig | None = None) -> None:
        self._config = config or get_cycle_config()

    def offsets(self, settings: CycleSettings, is_regular: bool) -> list[int]:
        nc = self._config.notifications
        if not is_regular:
            return list(nc.irregular_reminder_days)
        if settings.reminder_days is None:
            return list(nc.default_reminder_days)
        return list(settings.reminder_days)

    def schedule(
        self,
        prediction: CyclePrediction | None,
        settings: CycleSettings | None,
        insights: CycleInsights,
        as_of_date: date | None = None,
    ) -> list[NotificationEntry]:
        if prediction is None or settings is None or not settings.notification_enabled:
            return []

        today = as_of_date or date.today()
        entries: list[NotificationEntry] = []
        for days in self.offsets(settings, insights.is_regular):
            notify_date = prediction.predicted_start_date - timedelta(days=days)
            if notify_date < today:
                continue
            entries.append(
                NotificationEntry(
                    date=notify_date,
                    message=reminder_message(days, insights.is_regular),
                    days_before=days,
                )
            )
        return entries
