"""
Integration tests for Cocorico API.

These tests run against a real database and test the migrated schema.

Usage:
    pytest tests/integration/ -m integration

Requirements:
    - PostgreSQL database (DATABASE_URL env var)
"""
