"""
Domain layer for IPN enrollment business logic.

This layer contains:
- Data models (type-safe structures)
- Business rules (payment filter, membership dates, error classification)
- Processing pipeline (verification, enrollment, response mapping)
"""
