"""
Test Suite

This module contains all tests for the QueueFlow backend.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # Pytest fixtures (temporary SQLite store, seed data)
    ├── unit/               # Engine, services, broadcaster, views, utilities
    └── integration/        # HTTP and WebSocket endpoints

To run tests:
    pytest backend/tests/
    pytest backend/tests/unit/
    pytest backend/tests/integration/
"""
