"""
Shared utilities for the access-control library.

This package aggregates the cross-cutting building blocks used by
``access_control``:

- config: Library configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics for decisions and synchronization
- errors: Canonical error types and responses

Do not import from ``access_control`` into shared/.
"""
