# Schemas package init
"""
PostDesk Backend — Pydantic Schemas
=====================================

What:  The API contract: envelopes, pagination metadata, resource shapes.
Why:   Schemas are separate from ORM models so the wire format (camelCase,
       no password) evolves independently of the table layout.
"""
