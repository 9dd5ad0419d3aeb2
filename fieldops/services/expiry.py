"""
Document expiry policy.

``classify`` is the single source of truth for expiry buckets: HR document
projections and HR document statistics both go through it, so the tiers shown
to a user and the counts on the dashboard always agree.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from ..config import settings


NO_DATE = "No Date"
INVALID_DATE = "Invalid Date"
EXPIRED = "Expired"
VALID = "Valid"

TIER_NONE = "none"
TIER_INVALID = "invalid"
TIER_EXPIRED = "expired"
TIER_URGENT = "urgent"
TIER_WARNING = "warning"
TIER_NOTICE = "notice"
TIER_VALID = "valid"

EXPIRING_TIERS = (TIER_URGENT, TIER_WARNING, TIER_NOTICE)


@dataclass(frozen=True)
class ExpiryStatus:
    label: str
    tier: str
    days_left: Optional[int] = None

    @property
    def is_expired(self) -> bool:
        return self.tier == TIER_EXPIRED

    @property
    def is_expiring(self) -> bool:
        return self.tier in EXPIRING_TIERS

    @property
    def sort_key(self) -> float:
        # Missing or unreadable dates sort after every real date
        return float("inf") if self.days_left is None else float(self.days_left)

    def as_dict(self) -> dict:
        return {"label": self.label, "tier": self.tier, "days_left": self.days_left}


def parse_expiry_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a stored expiry date. Accepts ISO dates and ISO datetimes; returns None if unreadable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def classify(
    expiry_date: Union[str, date, None],
    today: date,
    urgent_days: Optional[int] = None,
    warning_days: Optional[int] = None,
    notice_days: Optional[int] = None,
) -> ExpiryStatus:
    """
    Map an expiry date to its status bucket relative to ``today``.

    days_left < 0 is Expired, 0..urgent is urgent, ..warning is warning,
    ..notice is notice, anything later is Valid.
    """
    if expiry_date is None or (isinstance(expiry_date, str) and not expiry_date.strip()):
        return ExpiryStatus(NO_DATE, TIER_NONE)

    parsed = parse_expiry_date(expiry_date)
    if parsed is None:
        return ExpiryStatus(INVALID_DATE, TIER_INVALID)

    urgent_days = settings.expiry_urgent_days if urgent_days is None else urgent_days
    warning_days = settings.expiry_warning_days if warning_days is None else warning_days
    notice_days = settings.expiry_notice_days if notice_days is None else notice_days

    days_left = (parsed - today).days
    if days_left < 0:
        return ExpiryStatus(EXPIRED, TIER_EXPIRED, days_left)
    if days_left <= urgent_days:
        tier = TIER_URGENT
    elif days_left <= warning_days:
        tier = TIER_WARNING
    elif days_left <= notice_days:
        tier = TIER_NOTICE
    else:
        return ExpiryStatus(VALID, TIER_VALID, days_left)
    return ExpiryStatus(f"Expires in {days_left}d", tier, days_left)
