"""
Shared utilities for the RES promoter.

This package aggregates common building blocks consumed by the service:

- config: Promoter configuration via pydantic-settings
- logging: Structured logging with promotion correlation
- errors: Canonical error types and responses
- test_helpers: In-memory RES fake for test suites

Do not import from service_* packages into shared/.
"""
