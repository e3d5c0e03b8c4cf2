"""
IPN enrollment pipeline - core business logic.

This module turns one PayPal Instant Payment Notification into exactly one
HTTP response:
1. Reject any method other than POST
2. Decode the form-encoded notification
3. Verify it with PayPal (postback of the untouched body)
4. Keep only Completed web_accept payments
5. Add the payer to the Mailchimp audience as a pending member
6. Map the Mailchimp outcome to a response

Expected failures become a ResponseDecision. An unexpected Mailchimp failure
is raised as EnrollmentFatalError so the invocation is reported as failed.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union

from config import Settings
from services import notification as notification_service
from integrations.mailchimp import MailchimpClient, MailchimpError
from integrations.paypal_verification import PaypalVerifier, create_http_client
from .models import (
    ENROLLED_STATUSES,
    EnrollmentKind,
    EnrollmentOutcome,
    ResponseDecision,
    VerificationStatus,
)
from . import rules

logger = logging.getLogger(__name__)


class EnrollmentFatalError(Exception):
    """
    Raised when Mailchimp fails in a way that is not a per-address rejection.

    Attributes:
        error: The original Mailchimp failure
        response: Decision already set for the invocation (always 500)
    """

    def __init__(self, error: Exception):
        super().__init__(f"Unexpected Mailchimp failure: {error}")
        self.error = error
        self.response = ResponseDecision.for_status(500)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IpnProcessor:
    """
    Handles the verification-and-enrollment pipeline for one notification.

    Holds only immutable collaborators, so one instance serves every
    invocation of a warm Lambda container.
    """

    def __init__(
        self,
        verifier: PaypalVerifier,
        mailchimp: MailchimpClient,
        list_id: str,
        sandbox: bool = False,
        clock: Callable[[], datetime] = _utc_now
    ):
        self.verifier = verifier
        self.mailchimp = mailchimp
        self.list_id = list_id
        self.sandbox = sandbox
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> 'IpnProcessor':
        """
        Build a processor and its HTTP clients from configuration.

        Raises:
            ConfigurationError: If the Mailchimp API key is malformed
        """
        verifier = PaypalVerifier(
            verify_url=settings.verify_url,
            client=create_http_client(settings.connect_timeout, settings.read_timeout),
        )
        mailchimp = MailchimpClient(
            api_key=settings.mailchimp_api_key,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )
        return cls(
            verifier=verifier,
            mailchimp=mailchimp,
            list_id=settings.mailchimp_list_id,
            sandbox=settings.paypal_sandbox,
        )

    def process(self, method: str, raw_body: Union[bytes, str]) -> ResponseDecision:
        """
        Process a single IPN request.

        Args:
            method: HTTP method of the inbound request
            raw_body: Request body exactly as received

        Returns:
            ResponseDecision for the request

        Raises:
            EnrollmentFatalError: If Mailchimp fails unexpectedly
        """
        if method != 'POST':
            logger.warning(f"Request method not allowed. Was: {method}")
            return ResponseDecision.for_status(405)

        logger.info("PayPal IPN Notification Event received successfully.")
        if self.sandbox:
            logger.info("SANDBOX: Using paypal sandbox environment")

        fields = notification_service.decode_notification(raw_body)
        txn_id = fields.get('txn_id')

        decision = self._verify(raw_body, txn_id)
        if decision is not None:
            return decision

        if not rules.passes_business_filter(fields):
            self._log_filter_rejection(fields)
            return ResponseDecision.for_status(500)

        outcome = self._submit_enrollment(fields)
        return self._classify(outcome)

    def _verify(self, raw_body: Union[bytes, str], txn_id: Optional[str]) -> Optional[ResponseDecision]:
        """Return a failure decision, or None when the notification is verified."""
        outcome = self.verifier.verify(raw_body)

        if outcome.status is VerificationStatus.VERIFIED:
            logger.info(
                f"Verified IPN: IPN message for Transaction ID: {txn_id} is verified."
            )
            return None

        if outcome.status is VerificationStatus.INVALID:
            logger.warning(
                f"Invalid IPN: IPN message for Transaction ID: {txn_id} is invalid."
            )
        else:
            logger.error(
                f"Invalid IPN: Unexpected IPN verify response body: {outcome.raw_body}"
            )
        return ResponseDecision.for_status(500)

    def _log_filter_rejection(self, fields: Dict[str, str]) -> None:
        payment_status = fields.get('payment_status')
        if payment_status != rules.REQUIRED_PAYMENT_STATUS:
            logger.warning(f'IPN: Payment status was not "Completed": {payment_status}')
        else:
            logger.warning(
                f'IPN: transaction type was not "web_accept": {fields.get("txn_type")}'
            )

    def _submit_enrollment(self, fields: Dict[str, str]) -> EnrollmentOutcome:
        """
        Add the payer to the audience as a pending member.

        Returns:
            EnrollmentOutcome of kind ACCEPTED, BUSINESS_ERROR, UNSUCCESSFUL
            or FATAL
        """
        email = fields.get('payer_email')
        logger.info(f"Mailchimp: {email}")

        request = rules.build_enrollment_request(fields, self.clock())

        try:
            result = self.mailchimp.add_list_member(self.list_id, request.to_member_payload())
        except MailchimpError as e:
            if e.errors:
                logger.info(f"Mailchimp: errors: {e.errors}")

            if rules.is_address_conflict(e, email):
                logger.info(f"Mailchimp: signup error: {e.status_code} {e.message}")
                return EnrollmentOutcome.business_error(e.status_code, e.message)
            return EnrollmentOutcome.fatal(e)

        member_status = result.get('status')
        if result.get('statusCode') == 200 and member_status in ENROLLED_STATUSES:
            return EnrollmentOutcome.accepted(result.get('email_address'), member_status)
        return EnrollmentOutcome.unsuccessful(result)

    def _classify(self, outcome: EnrollmentOutcome) -> ResponseDecision:
        """
        Map an enrollment outcome to the final response.

        Raises:
            EnrollmentFatalError: For FATAL outcomes
        """
        if outcome.kind is EnrollmentKind.ACCEPTED:
            logger.info(f"Mailchimp: Successfully subscribed: {outcome.email_address}")
            return ResponseDecision.for_status(200)

        if outcome.kind is EnrollmentKind.BUSINESS_ERROR:
            return ResponseDecision.for_status(outcome.status_code or 500)

        if outcome.kind is EnrollmentKind.UNSUCCESSFUL:
            logger.error(f"Mailchimp: Unsuccessful result: {outcome.result}")
            return ResponseDecision.for_status(500)

        logger.error(f"Mailchimp: unexpected failure: {outcome.error!r}")
        raise EnrollmentFatalError(outcome.error) from outcome.error
