"""
Runtime configuration for the PayPal IPN Lambda.

Values are read once from environment variables when the Lambda container
starts and are shared, read-only, by every invocation served by it.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# PayPal postback endpoints
PRODUCTION_VERIFY_URL = 'https://ipnpb.paypal.com/cgi-bin/webscr'
SANDBOX_VERIFY_URL = 'https://ipnpb.sandbox.paypal.com/cgi-bin/webscr'

_TRUTHY = {'1', 'true', 'yes', 'on'}


class ConfigurationError(Exception):
    """Raised when module configuration is invalid or missing."""
    pass


def get_verify_url(sandbox: bool) -> str:
    """Return the PayPal verification endpoint for the selected environment."""
    return SANDBOX_VERIFY_URL if sandbox else PRODUCTION_VERIFY_URL


def _parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in _TRUTHY


def _parse_timeout(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got: '{raw}'")


@dataclass(frozen=True)
class Settings:
    """
    Immutable process configuration.

    Attributes:
        mailchimp_api_key: Mailchimp API key including the data center suffix
        mailchimp_list_id: Mailchimp audience (list) identifier
        paypal_sandbox: True to verify against the PayPal sandbox
        environment: Deployment stage label (dev, test, prod)
        connect_timeout: Outbound connect timeout in seconds
        read_timeout: Outbound read timeout in seconds
    """
    mailchimp_api_key: str
    mailchimp_list_id: str
    paypal_sandbox: bool = False
    environment: str = 'dev'
    connect_timeout: float = 10.0
    read_timeout: float = 30.0

    @property
    def verify_url(self) -> str:
        return get_verify_url(self.paypal_sandbox)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings: Validated configuration

        Raises:
            ConfigurationError: If a required variable is missing or malformed
        """
        if environ is None:
            environ = os.environ

        api_key = environ.get('MAILCHIMP_API_KEY')
        if not api_key:
            raise ConfigurationError(
                "MAILCHIMP_API_KEY environment variable is required but not set."
            )

        list_id = environ.get('MAILCHIMP_LIST_ID')
        if not list_id:
            raise ConfigurationError(
                "MAILCHIMP_LIST_ID environment variable is required but not set."
            )

        settings = cls(
            mailchimp_api_key=api_key,
            mailchimp_list_id=list_id,
            paypal_sandbox=_parse_bool(environ.get('PAYPAL_SANDBOX')),
            environment=environ.get('ENVIRONMENT', 'dev'),
            connect_timeout=_parse_timeout(environ, 'HTTP_CONNECT_TIMEOUT', 10.0),
            read_timeout=_parse_timeout(environ, 'HTTP_READ_TIMEOUT', 30.0),
        )

        logger.info(
            f"Configuration loaded: environment={settings.environment}, "
            f"sandbox={settings.paypal_sandbox}, list_id={settings.mailchimp_list_id}"
        )
        return settings
