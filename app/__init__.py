"""
SocialFeed Backend - Application Package
==========================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │ Dependencies (Authentication Gate)  │  ← Bearer token → caller
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Identity, tokens, feed, files
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
