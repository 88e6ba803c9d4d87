# Middleware package init
"""
VocalSaaS Backend: Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Upload Size]
            → [GZip] → [CORS] → Route

    Rate limiting runs first so abusive clients are rejected before any
    identity-provider or vendor call is made on their behalf. The upload
    size guard sits after logging so rejected uploads still get an access
    log line, and before routing so an oversized body is never parsed.
    Responses travel the chain in reverse, which is how X-Request-ID ends
    up on every response and how the access log sees the final status code.
"""
