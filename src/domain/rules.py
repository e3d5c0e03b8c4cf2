"""
Business rules for turning a verified notification into an enrollment.

Pure functions with no I/O, so each rule can be exercised on its own.
"""

from datetime import datetime
from typing import Dict, Optional

from .models import EnrollmentRequest

# The only notification this function acts on: a completed, direct web payment
REQUIRED_PAYMENT_STATUS = 'Completed'
REQUIRED_TXN_TYPE = 'web_accept'

MEMBERSHIP_YEARS = 5


def passes_business_filter(fields: Dict[str, str]) -> bool:
    """Check the notification is a Completed web_accept payment."""
    return (
        fields.get('payment_status') == REQUIRED_PAYMENT_STATUS
        and fields.get('txn_type') == REQUIRED_TXN_TYPE
    )


def add_calendar_years(value: datetime, years: int) -> datetime:
    """
    Move a datetime to the same date and time ``years`` later.

    29 February rolls forward to 1 March when the target year is not a
    leap year.

    Example:
        >>> add_calendar_years(datetime(2024, 2, 29), 5)
        datetime.datetime(2029, 3, 1, 0, 0)
    """
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, month=3, day=1)


def build_enrollment_request(fields: Dict[str, str], now: datetime) -> EnrollmentRequest:
    """
    Build the pending-member request for the payer of a notification.

    Args:
        fields: Decoded notification fields
        now: Current time (UTC), used as the join date

    Returns:
        EnrollmentRequest expiring MEMBERSHIP_YEARS calendar years after now
    """
    return EnrollmentRequest(
        email_address=fields.get('payer_email'),
        first_name=fields.get('first_name'),
        last_name=fields.get('last_name'),
        joined_at=now,
        expires_at=add_calendar_years(now, MEMBERSHIP_YEARS),
    )


def is_address_conflict(error: Exception, email: Optional[str]) -> bool:
    """
    Decide whether a Mailchimp failure is an expected per-address rejection.

    Mailchimp reports address-level problems ("x@y.com is already a list
    member", "x@y.com looks fake or invalid") with the address in the
    message. Any other failure is unexpected.
    """
    if not email:
        return False
    message = getattr(error, 'message', None)
    if message is None:
        message = str(error)
    return email in message
