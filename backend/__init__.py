"""
Backend package for the pupi map API.

This package provides a FastAPI application with database, object storage
and identity abstractions so the same service runs against a JSON file,
SQLite or Postgres.
"""
