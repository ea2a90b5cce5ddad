"""Map an invoice due date to a reminder bucket.

Preview and dispatch both go through ``classify_due_date`` so the bucket a
user sees in the preview is the bucket that gets sent.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class ReminderType(str, Enum):
    BEFORE_DUE_7 = "before_due_7"
    BEFORE_DUE_3 = "before_due_3"
    ON_DUE = "on_due"
    OVERDUE_7 = "overdue_7"
    OVERDUE_14 = "overdue_14"
    OVERDUE_30 = "overdue_30"


class UrgencyTier(str, Enum):
    INFO = "info"
    WARNING = "warning"
    URGENT = "urgent"
    FINAL_NOTICE = "final_notice"


# Rendering only; dispatch control flow never looks at urgency.
URGENCY_BY_REMINDER_TYPE: dict[ReminderType, UrgencyTier] = {
    ReminderType.BEFORE_DUE_7: UrgencyTier.INFO,
    ReminderType.BEFORE_DUE_3: UrgencyTier.WARNING,
    ReminderType.ON_DUE: UrgencyTier.WARNING,
    ReminderType.OVERDUE_7: UrgencyTier.URGENT,
    ReminderType.OVERDUE_14: UrgencyTier.URGENT,
    ReminderType.OVERDUE_30: UrgencyTier.FINAL_NOTICE,
}


@dataclass(frozen=True)
class ReminderClassification:
    days_until_due: int
    reminder_type: ReminderType
    urgency: UrgencyTier


def days_until_due(due_date: date, today: date) -> int:
    """Whole days from ``today`` to ``due_date``; negative once overdue."""
    return (due_date - today).days


def classify_days(days: int) -> ReminderType:
    """Return the bucket for a day offset. Defined for every integer."""
    if days > 5:
        return ReminderType.BEFORE_DUE_7
    if days > 1:
        return ReminderType.BEFORE_DUE_3
    if days >= 0:
        return ReminderType.ON_DUE
    if days >= -7:
        return ReminderType.OVERDUE_7
    if days >= -14:
        return ReminderType.OVERDUE_14
    return ReminderType.OVERDUE_30


def urgency_for(reminder_type: ReminderType) -> UrgencyTier:
    return URGENCY_BY_REMINDER_TYPE[reminder_type]


def classify_due_date(due_date: date, today: date) -> ReminderClassification:
    days = days_until_due(due_date, today)
    reminder_type = classify_days(days)
    return ReminderClassification(
        days_until_due=days,
        reminder_type=reminder_type,
        urgency=urgency_for(reminder_type),
    )
