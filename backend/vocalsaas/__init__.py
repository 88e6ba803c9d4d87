"""
VocalSaaS Backend: Application Package
======================================

What: Voice-journaling API. Clones a user's voice through an external vendor,
      synthesizes guided sessions with it, and keeps sessions and journal
      entries per user.
Who:  Imported by uvicorn (`vocalsaas.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← registry, synthesis, stores
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database / External Providers     │  ← async SQLAlchemy, httpx clients
    └─────────────────────────────────────┘

    External collaborators (identity provider, voice vendor) are reached only
    through service classes that routes receive via FastAPI dependencies.
"""

__version__ = "1.0.0"
