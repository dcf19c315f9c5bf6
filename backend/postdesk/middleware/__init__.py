# Middleware package init
"""
PostDesk Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (execution order):
    Request → [GZip] → [Request ID] → [Audit Logging] → [Principal]
            → [CORS] → [Unhandled Error] → exception handlers → Route

    - Request ID runs before audit logging so every record carries the id.
    - Principal runs before routes so the access guard sees a resolved caller.
    - Unhandled Error sits innermost: failures become envelopes before they
      reach the audit middleware, which then records the error phase.
"""
