"""
Shared utilities for the CodyVerse API client.

This package aggregates common building blocks consumed by the client:

- config: Client configuration via pydantic-settings
- logging: Structured logging with request correlation
- errors: Canonical error types and responses

Do not import from service_* packages into shared/.
"""
