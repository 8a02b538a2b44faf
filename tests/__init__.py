"""Test suite for formrelay.

This package contains tests for:
- Conditional visibility resolution and skip sets
- Sanitization, error aggregation and the field-type registry
- Query parameter capture and email routing
- Event fan-out and submission handlers
- End-to-end submissions through FormRuntime
"""
