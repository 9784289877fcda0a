"""Serverless function entrypoint package (`api/index.py`)."""
