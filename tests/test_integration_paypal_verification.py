"""
Tests for the PayPal verification postback.
"""

import httpx
import pytest

from config import SANDBOX_VERIFY_URL
from domain.models import VerificationStatus
from integrations.paypal_verification import PaypalVerifier, USER_AGENT, create_http_client


def _verifier(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler), headers={'User-Agent': USER_AGENT})
    return PaypalVerifier(verify_url=SANDBOX_VERIFY_URL, client=client)


class TestVerify:
    """Test PaypalVerifier.verify."""

    def test_posts_prefixed_body(self, ipn_body):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, text='VERIFIED')

        outcome = _verifier(handler).verify(ipn_body)

        assert outcome.status is VerificationStatus.VERIFIED
        assert len(requests) == 1
        request = requests[0]
        assert request.method == 'POST'
        assert str(request.url) == SANDBOX_VERIFY_URL
        assert request.content == b'cmd=_notify-validate&' + ipn_body
        assert request.headers['Content-Type'] == 'application/x-www-form-urlencoded'
        assert request.headers['User-Agent'] == USER_AGENT

    def test_invalid(self, ipn_body):
        outcome = _verifier(lambda request: httpx.Response(200, text='INVALID')).verify(ipn_body)

        assert outcome.status is VerificationStatus.INVALID

    def test_unexpected_text(self, ipn_body):
        outcome = _verifier(lambda request: httpx.Response(200, text='VERIFIED but not really')).verify(ipn_body)

        assert outcome.status is VerificationStatus.UNEXPECTED
        assert outcome.raw_body == 'VERIFIED but not really'

    def test_non_200_is_unexpected(self, ipn_body):
        outcome = _verifier(lambda request: httpx.Response(503, text='VERIFIED')).verify(ipn_body)

        assert outcome.status is VerificationStatus.UNEXPECTED

    def test_transport_error_is_unexpected(self, ipn_body):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        outcome = _verifier(handler).verify(ipn_body)

        assert outcome.status is VerificationStatus.UNEXPECTED
        assert 'connection refused' in outcome.raw_body

    def test_no_retry_on_failure(self, ipn_body):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, text='error')

        _verifier(handler).verify(ipn_body)

        assert len(calls) == 1


def test_create_http_client_sets_user_agent():
    client = create_http_client(connect_timeout=2.0, read_timeout=5.0)

    assert client.headers['User-Agent'] == USER_AGENT
    assert client.timeout.connect == 2.0
    assert client.timeout.read == 5.0
    client.close()
