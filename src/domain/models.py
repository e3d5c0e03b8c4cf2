"""
Data models for the IPN enrollment domain.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from http import HTTPStatus
from typing import Optional, Dict, Any

# Member states that count as a successful enrollment
ENROLLED_STATUSES = ('pending', 'subscribed')


def format_timestamp(value: datetime) -> str:
    """
    Format a datetime as ISO-8601 UTC with millisecond precision.

    Example:
        >>> format_timestamp(datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc))
        '2024-01-15T10:00:00.000Z'
    """
    value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"


def reason_phrase(status_code: int) -> str:
    """Standard HTTP reason phrase for a status code."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return 'Unknown'


class VerificationStatus(Enum):
    VERIFIED = 'VERIFIED'
    INVALID = 'INVALID'
    UNEXPECTED = 'UNEXPECTED'


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Result of the PayPal verification round-trip.

    Attributes:
        status: VERIFIED, INVALID or UNEXPECTED
        raw_body: Literal text returned by the verifier (or the transport error)
    """
    status: VerificationStatus
    raw_body: str

    @classmethod
    def from_response_text(cls, text: str) -> 'VerificationOutcome':
        """Map the literal verifier response; anything but an exact match is UNEXPECTED."""
        if text == 'VERIFIED':
            return cls(VerificationStatus.VERIFIED, text)
        if text == 'INVALID':
            return cls(VerificationStatus.INVALID, text)
        return cls(VerificationStatus.UNEXPECTED, text)

    @property
    def is_verified(self) -> bool:
        return self.status is VerificationStatus.VERIFIED


@dataclass(frozen=True)
class EnrollmentRequest:
    """
    Mailing-list enrollment derived from a verified notification.

    Attributes:
        email_address: Payer email (list member key)
        first_name: Payer first name (may be None if PayPal omitted it)
        last_name: Payer last name (may be None if PayPal omitted it)
        joined_at: Enrollment time (UTC)
        expires_at: Membership expiry, five calendar years after joined_at
        status: Requested member status
    """
    email_address: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    joined_at: datetime
    expires_at: datetime
    status: str = 'pending'

    def to_member_payload(self) -> Dict[str, Any]:
        """Build the Mailchimp list member body."""
        return {
            'email_address': self.email_address,
            'merge_fields': {
                'FNAME': self.first_name,
                'LNAME': self.last_name,
                'JOINED': format_timestamp(self.joined_at),
                'EXPIRES': format_timestamp(self.expires_at),
            },
            'status': self.status,
        }


class EnrollmentKind(Enum):
    ACCEPTED = 'accepted'
    BUSINESS_ERROR = 'business_error'
    UNSUCCESSFUL = 'unsuccessful'
    FATAL = 'fatal'


@dataclass
class EnrollmentOutcome:
    """
    Result of the mailing-list enrollment call.

    Build instances through the named constructors; each kind only fills
    the fields relevant to it.
    """
    kind: EnrollmentKind
    email_address: Optional[str] = None
    member_status: Optional[str] = None
    status_code: Optional[int] = None
    message: Optional[str] = None
    result: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Exception] = None

    @classmethod
    def accepted(cls, email_address: str, member_status: str) -> 'EnrollmentOutcome':
        return cls(EnrollmentKind.ACCEPTED, email_address=email_address,
                   member_status=member_status)

    @classmethod
    def business_error(cls, status_code: Optional[int], message: str) -> 'EnrollmentOutcome':
        return cls(EnrollmentKind.BUSINESS_ERROR, status_code=status_code or 500,
                   message=message)

    @classmethod
    def unsuccessful(cls, result: Dict[str, Any]) -> 'EnrollmentOutcome':
        return cls(EnrollmentKind.UNSUCCESSFUL, result=result)

    @classmethod
    def fatal(cls, error: Exception) -> 'EnrollmentOutcome':
        return cls(EnrollmentKind.FATAL, error=error)

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.kind is EnrollmentKind.ACCEPTED:
            return f"EnrollmentOutcome(accepted, email={self.email_address}, status={self.member_status})"
        if self.kind is EnrollmentKind.BUSINESS_ERROR:
            return f"EnrollmentOutcome(business_error, status_code={self.status_code}, message={self.message})"
        if self.kind is EnrollmentKind.UNSUCCESSFUL:
            return f"EnrollmentOutcome(unsuccessful, result={self.result})"
        return f"EnrollmentOutcome(fatal, error={self.error!r})"


@dataclass(frozen=True)
class ResponseDecision:
    """
    Final status code and body written back to PayPal.

    The body is always the standard reason phrase for the status code.
    """
    status_code: int
    body: str

    @classmethod
    def for_status(cls, status_code: int) -> 'ResponseDecision':
        return cls(status_code, reason_phrase(status_code))

    def to_lambda_response(self) -> Dict[str, Any]:
        """Render as an API Gateway proxy integration response."""
        return {
            'statusCode': self.status_code,
            'headers': {'Content-Type': 'text/plain'},
            'body': self.body,
        }
