# Routes package init
"""
SwapCycle Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:      POST   /api/auth/signup          (register)
                    POST   /api/auth/login           (login)
    - listings.py:  POST   /api/listings             (create, guarded)
                    GET    /api/listings             (browse)
                    GET    /api/listings/{id}        (fetch)
                    PATCH  /api/listings/{id}        (update, guarded, owner)
                    DELETE /api/listings/{id}        (delete, guarded, owner)
    - offers.py:    POST   /api/offers/{listing_id}  (propose, guarded)
                    PATCH  /api/offers/{offer_id}    (act, guarded, listing owner)
                    GET    /api/offers               (caller's offers, guarded)
    - health.py:    GET    /health, GET /

Design Principle:
    Routes are THIN: parse the request, resolve the caller through the Access
    Guard dependency, call one service method, return its schema. Every error
    is raised by a service and formatted by the handlers in main.py.
"""
