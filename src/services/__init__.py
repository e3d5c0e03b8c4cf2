"""
Utility functions for Lambda handler operations.

This package contains reusable service functions for decoding PayPal IPN
messages.
"""

__all__ = ['notification']
