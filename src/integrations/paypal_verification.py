"""
PayPal IPN Verification Module

Authenticates an Instant Payment Notification by posting the original message
back to PayPal, prefixed with ``cmd=_notify-validate``, and reading the literal
VERIFIED / INVALID answer.

Usage:
    from integrations.paypal_verification import PaypalVerifier

    verifier = PaypalVerifier(verify_url=settings.verify_url)
    outcome = verifier.verify(raw_body)
    if outcome.is_verified:
        ...
"""

import logging
import time
from typing import Optional, Union

import httpx

from domain.models import VerificationOutcome, VerificationStatus
from services.notification import build_verification_body

logger = logging.getLogger(__name__)

USER_AGENT = 'paypal-ipn-mailchimp/1.0'


def create_http_client(connect_timeout: float = 10.0, read_timeout: float = 30.0) -> httpx.Client:
    """
    Create the httpx client used for the verification postback.

    The default transport performs no retries; a failed postback fails the
    invocation and PayPal resends the notification later.
    """
    timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
    return httpx.Client(timeout=timeout, headers={'User-Agent': USER_AGENT})


class PaypalVerifier:
    """
    Posts notifications back to PayPal for verification.

    The endpoint (sandbox or production) is fixed when the verifier is built.
    """

    def __init__(self, verify_url: str, client: Optional[httpx.Client] = None):
        self.verify_url = verify_url
        self._client = client or create_http_client()

    def verify(self, raw_body: Union[bytes, str]) -> VerificationOutcome:
        """
        Run the verification round-trip for one notification.

        Args:
            raw_body: The notification body exactly as received

        Returns:
            VerificationOutcome: VERIFIED only for the exact text "VERIFIED";
            transport failures and non-200 answers are UNEXPECTED
        """
        start_time = time.time()
        try:
            response = self._client.post(
                self.verify_url,
                content=build_verification_body(raw_body),
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
            )
        except httpx.HTTPError as e:
            logger.error(f"PayPal IPN: verification request failed: {e}")
            return VerificationOutcome(VerificationStatus.UNEXPECTED, str(e))

        elapsed = time.time() - start_time
        logger.info(
            f"PayPal IPN: verification response status={response.status_code}, "
            f"elapsed={elapsed:.2f}s"
        )

        if response.status_code != 200:
            logger.error(
                f"PayPal IPN: verification endpoint returned HTTP {response.status_code}"
            )
            return VerificationOutcome(VerificationStatus.UNEXPECTED, response.text)

        return VerificationOutcome.from_response_text(response.text)
