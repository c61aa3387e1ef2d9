"""
Topapi Backend: Application Package
=====================================

Restaurant inventory API: stock items, categories, departments, user
profiles and an activity log, behind a hosted identity provider.

Layers:

    ┌─────────────────────────────────────┐
    │    Routes + Middleware (HTTP)       │  ← envelope, status codes, headers
    ├─────────────────────────────────────┤
    │    Services (rules + access)        │  ← validation, authorization
    ├─────────────────────────────────────┤
    │    RecordStore / IdentityProvider   │  ← SQLAlchemy, GoTrue over httpx
    └─────────────────────────────────────┘

Services depend on the two abstract collaborators only, so tests run them
against in-memory doubles.
"""

__version__ = "1.0.0"
