"""
Tests for enrollment business rules.
"""

import pytest
from datetime import datetime, timezone

from domain import rules
from integrations.mailchimp import MailchimpError


class TestBusinessFilter:
    """Test passes_business_filter."""

    def test_completed_web_accept(self):
        assert rules.passes_business_filter({
            'payment_status': 'Completed',
            'txn_type': 'web_accept',
        }) is True

    @pytest.mark.parametrize('fields', [
        {'payment_status': 'Pending', 'txn_type': 'web_accept'},
        {'payment_status': 'Refunded', 'txn_type': 'web_accept'},
        {'payment_status': 'Completed', 'txn_type': 'subscr_payment'},
        {'payment_status': 'completed', 'txn_type': 'web_accept'},
        {'txn_type': 'web_accept'},
        {'payment_status': 'Completed'},
        {},
    ])
    def test_everything_else_rejected(self, fields):
        assert rules.passes_business_filter(fields) is False


class TestAddCalendarYears:
    """Test calendar-year arithmetic."""

    def test_same_date_five_years_later(self):
        joined = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

        assert rules.add_calendar_years(joined, 5) == datetime(2029, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

    def test_leap_day_rolls_to_march_first(self):
        joined = datetime(2024, 2, 29, 12, 30, tzinfo=timezone.utc)

        assert rules.add_calendar_years(joined, 5) == datetime(2029, 3, 1, 12, 30, tzinfo=timezone.utc)

    def test_leap_day_to_leap_year(self):
        joined = datetime(2024, 2, 29, tzinfo=timezone.utc)

        assert rules.add_calendar_years(joined, 4) == datetime(2028, 2, 29, tzinfo=timezone.utc)

    def test_keeps_time_of_day(self):
        joined = datetime(2023, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc)

        expires = rules.add_calendar_years(joined, 5)

        assert expires == datetime(2028, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc)


class TestBuildEnrollmentRequest:
    """Test build_enrollment_request."""

    def test_builds_pending_member(self, fixed_now):
        fields = {
            'payer_email': 'buyer@example.com',
            'first_name': 'Test',
            'last_name': 'User',
            'txn_id': '61E67681CH3238416',
        }

        request = rules.build_enrollment_request(fields, fixed_now)

        assert request.email_address == 'buyer@example.com'
        assert request.first_name == 'Test'
        assert request.last_name == 'User'
        assert request.status == 'pending'
        assert request.joined_at == fixed_now
        assert request.expires_at == datetime(2029, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

    def test_missing_names(self, fixed_now):
        request = rules.build_enrollment_request({'payer_email': 'buyer@example.com'}, fixed_now)

        assert request.first_name is None
        assert request.last_name is None


class TestIsAddressConflict:
    """Test is_address_conflict."""

    def test_member_exists(self):
        error = MailchimpError(
            'buyer@example.com is already a list member. Use PUT to insert or update list members.',
            status_code=400,
            title='Member Exists'
        )

        assert rules.is_address_conflict(error, 'buyer@example.com') is True

    def test_fake_address(self):
        error = MailchimpError(
            'buyer@example.com looks fake or invalid, please enter a real email address.',
            status_code=400,
            title='Invalid Resource'
        )

        assert rules.is_address_conflict(error, 'buyer@example.com') is True

    def test_unrelated_message(self):
        error = MailchimpError(
            'Your request did not include an API key.',
            status_code=401,
            title='API Key Missing'
        )

        assert rules.is_address_conflict(error, 'buyer@example.com') is False

    def test_missing_email(self):
        error = MailchimpError('None is already a list member', status_code=400)

        assert rules.is_address_conflict(error, None) is False
        assert rules.is_address_conflict(error, '') is False

    def test_plain_exception_uses_str(self):
        assert rules.is_address_conflict(ValueError('bad buyer@example.com'), 'buyer@example.com') is True
