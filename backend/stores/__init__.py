"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: engine/pool lifecycle, sessions, table bootstrap
- Redis: best-effort JSON cache facade with TTL policies

No request/response shaping in stores - that belongs in routes and services.
"""
