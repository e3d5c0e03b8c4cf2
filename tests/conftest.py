"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

# Add src and hooks to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../hooks'))

# Set up test environment variables before importing any modules
os.environ.setdefault('MAILCHIMP_API_KEY', '0123456789abcdef0123456789abcdef-us6')
os.environ.setdefault('MAILCHIMP_LIST_ID', 'a1b2c3d4e5')
os.environ.setdefault('PAYPAL_SANDBOX', 'true')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')

PAYER_EMAIL = 'buyer@example.com'

# Completed web_accept notification as PayPal posts it
IPN_BODY = (
    'mc_gross=19.95&protection_eligibility=Eligible&payer_id=LPLWNMTBWMFAY'
    '&payment_date=20%3A12%3A59+Jan+13%2C+2009+PST&payment_status=Completed'
    '&charset=windows-1252&first_name=Test&mc_fee=0.88&notify_version=2.6'
    '&payer_status=verified&business=seller%40paypalsandbox.com&quantity=1'
    '&verify_sign=AtkOfCXbDm2hu0ZELryHFjY-Vb7PAUvS6nMXgysbElEn9v-1XcmSoGtf'
    '&payer_email=buyer%40example.com&txn_id=61E67681CH3238416'
    '&payment_type=instant&last_name=User&receiver_email=seller%40paypalsandbox.com'
    '&txn_type=web_accept&item_name=Membership&mc_currency=USD'
)


@pytest.fixture
def ipn_body():
    """Raw IPN body bytes."""
    return IPN_BODY.encode('utf-8')


@pytest.fixture
def fixed_now():
    """Fixed enrollment time."""
    return datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    context = Mock()
    context.aws_request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:us-west-2:123456789012:function:paypal-ipn-test"
    context.function_name = "paypal-ipn-test"
    return context
