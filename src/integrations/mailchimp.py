"""
Mailchimp Marketing API Module

Minimal client for the Mailchimp Marketing API v3 list-member endpoint.

Usage:
    from integrations.mailchimp import MailchimpClient, MailchimpError

    mailchimp = MailchimpClient(api_key="0123456789abcdef-us6")
    try:
        member = mailchimp.add_list_member("a1b2c3d4e5", payload)
    except MailchimpError as e:
        print(e.status_code, e.message)
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from config import ConfigurationError

logger = logging.getLogger(__name__)

API_URL_TEMPLATE = 'https://{dc}.api.mailchimp.com/3.0'


class MailchimpError(Exception):
    """
    Raised when a Mailchimp API call fails.

    Attributes:
        status_code: HTTP status from Mailchimp (None for transport failures)
        title: Problem title, e.g. "Member Exists"
        message: Problem detail, e.g. "x@y.com is already a list member..."
        errors: Field-level errors reported by Mailchimp
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        title: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.title = title
        self.errors = errors or []

    def __repr__(self) -> str:
        return (
            f"MailchimpError(status_code={self.status_code}, title={self.title!r}, "
            f"message={self.message!r})"
        )


def api_url_for_key(api_key: str) -> str:
    """
    Derive the API root from the data center suffix of an API key.

    Raises:
        ConfigurationError: If the key has no ``-<dc>`` suffix
    """
    _, sep, dc = api_key.rpartition('-')
    if not sep or not dc:
        raise ConfigurationError(
            "MAILCHIMP_API_KEY has invalid format. "
            "Expected '<key>-<datacenter>', e.g. '0123456789abcdef-us6'"
        )
    return API_URL_TEMPLATE.format(dc=dc)


def _status_code(problem: Dict[str, Any], response: httpx.Response) -> int:
    try:
        return int(problem.get('status', response.status_code))
    except (TypeError, ValueError):
        return response.status_code


def _error_from_response(response: httpx.Response) -> MailchimpError:
    try:
        problem = response.json()
    except ValueError:
        return MailchimpError(response.text, status_code=response.status_code)

    if not isinstance(problem, dict):
        return MailchimpError(response.text, status_code=response.status_code)

    return MailchimpError(
        problem.get('detail') or problem.get('title') or response.text,
        status_code=_status_code(problem, response),
        title=problem.get('title'),
        errors=problem.get('errors'),
    )


class MailchimpClient:
    """Authenticated Mailchimp API client bound to one API key."""

    def __init__(
        self,
        api_key: str,
        client: Optional[httpx.Client] = None,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0
    ):
        self.base_url = api_url_for_key(api_key)
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout)
        )
        self._auth = httpx.BasicAuth('anystring', api_key)
        logger.info(f"Mailchimp client initialized: base_url={self.base_url}")

    def add_list_member(self, list_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add a member to a Mailchimp audience.

        Args:
            list_id: Audience identifier
            payload: Member body (email_address, status, merge_fields)

        Returns:
            dict: Member resource returned by Mailchimp, plus ``statusCode``

        Raises:
            MailchimpError: On any non-2xx answer or transport failure
        """
        url = f"{self.base_url}/lists/{list_id}/members"
        try:
            response = self._client.post(url, json=payload, auth=self._auth)
        except httpx.HTTPError as e:
            logger.error(f"Mailchimp: request failed: {e}")
            raise MailchimpError(f"Mailchimp request failed: {e}") from e

        if not response.is_success:
            raise _error_from_response(response)

        try:
            result = response.json()
        except ValueError:
            result = {}
        if not isinstance(result, dict):
            result = {'body': result}
        result['statusCode'] = response.status_code
        return result
