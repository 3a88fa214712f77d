# Middleware package init
"""
SwapCycle Backend — Middleware Package
========================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Auth Rate Limit] → [Logging] → [GZip] → [CORS] → Route

    - Request ID runs first so the rate limiter's 429 body and every log line
      carry the correlation id.
    - The rate limiter only inspects /api/auth/*; other paths pass straight through.
    - Logging measures everything below it, including the route and its
      exception handlers.

Authentication is NOT middleware: the Access Guard is a route dependency
(routes/dependencies.py) because browse/fetch routes are public.
"""
