"""
PostDesk Backend — Application Package
========================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │   Middleware (id, audit, principal) │  ← cross-cutting, every request
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (pipeline + business)    │  ← query engine, guard, envelopes
    ├─────────────────────────────────────┤
    │     Repositories (persistence)      │  ← Repository[T] over SQLAlchemy
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
