# Services package init
"""
Topapi Backend: Services Layer
================================

Service Inventory:
    - RecordStore (abstract) / SqlRecordStore: table-agnostic row access
    - IdentityProvider (abstract) / SupabaseAuthClient: hosted auth REST API
    - TokenVerifier: bearer token → Principal
    - authorization: role normalization and the admin / owner checks
    - ResourceService and its subclasses: validate → authorize → store
    - AuthService: signup with profile rollback, login, password flows
    - FixedWindowRateLimiter: per-address request budget
"""
