"""
AWS Lambda handler for PayPal IPN notifications behind API Gateway.

Thin orchestration layer that delegates to IpnProcessor.
Policy: every request gets one plain-text response, except unexpected
Mailchimp failures, which are re-raised so the invocation is reported as an
error.
"""

import base64
import binascii
import json
import logging
import os
from typing import Dict, Any

from config import ConfigurationError, Settings
from domain.ipn_processor import EnrollmentFatalError, IpnProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize at module import time (reused across invocations)
try:
    settings = Settings.from_environ()
    ipn_processor = IpnProcessor.from_settings(settings)
except ConfigurationError as e:
    logger.error(f"Module initialization failed: {e}")
    raise


def _request_method(event: Dict[str, Any]) -> str:
    """Read the HTTP method from a REST (v1) or HTTP API (v2) proxy event."""
    method = event.get('httpMethod')
    if method:
        return method
    return event.get('requestContext', {}).get('http', {}).get('method', '')


def _raw_body(event: Dict[str, Any]) -> bytes:
    """Return the request body bytes exactly as PayPal sent them."""
    body = event.get('body') or ''
    if event.get('isBase64Encoded'):
        try:
            return base64.b64decode(body)
        except (binascii.Error, ValueError) as e:
            logger.warning(f"Request body is not valid base64, using it as text: {e}")
    return body.encode('utf-8', errors='surrogatepass')



def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Handle one PayPal IPN request.

    Args:
        event: API Gateway proxy event
        context: Lambda context

    Returns:
        API Gateway proxy response with the reason phrase as body

    Raises:
        EnrollmentFatalError: If Mailchimp fails unexpectedly
    """
    request_id = getattr(context, 'aws_request_id', None)
    logger.info(f"IPN request received: request_id={request_id}, environment={settings.environment}")

    try:
        decision = ipn_processor.process(_request_method(event), _raw_body(event))
    except EnrollmentFatalError as e:
        logger.error(
            f"IPN processing failed with status {e.response.status_code}: {e}",
            exc_info=True
        )
        raise

    logger.info(f"IPN request complete: status={decision.status_code}")
    return decision.to_lambda_response()


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    return {
        'statusCode': 200,
        'body': json.dumps({
            'status': 'healthy',
            'environment': settings.environment,
            'sandbox': settings.paypal_sandbox,
            'mailchimpApiUrl': ipn_processor.mailchimp.base_url
        })
    }
