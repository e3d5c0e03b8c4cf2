"""
IPN message utilities.

This module decodes the form-encoded notification body PayPal posts to the
function and builds the body of the verification postback.
"""

import logging
from typing import Dict, Union
from urllib.parse import parse_qsl

logger = logging.getLogger(__name__)

VERIFY_COMMAND = b'cmd=_notify-validate&'


def _as_bytes(raw: Union[bytes, str]) -> bytes:
    if isinstance(raw, str):
        return raw.encode('utf-8', errors='surrogatepass')
    return raw or b''


def decode_notification(raw: Union[bytes, str]) -> Dict[str, str]:
    """
    Decode a form-urlencoded IPN body into a field mapping.

    Best-effort and total: malformed pairs, bad percent-escapes and invalid
    UTF-8 are decoded with replacement characters instead of raising. When a
    key repeats, the last value wins.

    Args:
        raw: Raw request body as received

    Returns:
        dict: Field name to value

    Example:
        >>> decode_notification(b"txn_id=61E67681CH3238416&payer_email=buyer%40example.com")
        {'txn_id': '61E67681CH3238416', 'payer_email': 'buyer@example.com'}
    """
    text = _as_bytes(raw).decode('utf-8', errors='replace')
    pairs = parse_qsl(text, keep_blank_values=True, errors='replace')
    fields = dict(pairs)
    logger.debug(f"Decoded IPN fields: {sorted(fields.keys())}")
    return fields


def build_verification_body(raw: Union[bytes, str]) -> bytes:
    """
    Prefix the untouched notification body with the validation command.

    PayPal compares the postback byte-for-byte with the original message, so
    the decoded fields must never be re-serialized here.
    """
    return VERIFY_COMMAND + _as_bytes(raw)
