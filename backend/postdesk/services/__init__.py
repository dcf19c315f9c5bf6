# Services package init
"""
PostDesk Backend — Services Layer
===================================

Request-processing pipeline (resource-agnostic):
    - QuerySpecBuilder / QueryExecutor: paging, search, sort over a Repository
    - AccessGuard:         route → required roles
    - EnvelopeTransformer: success envelope
    - ErrorNormalizer:     every failure → error envelope
    - AuditLogger:         redacted request/response/error records

Collaborators consumed through narrow interfaces:
    - Authenticator, Hasher, PhoneValidator

Resource services:
    - UserService, PostService
"""
