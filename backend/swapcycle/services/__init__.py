# Services package init
"""
SwapCycle Backend — Services Layer
=====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Each service is constructed per request with that request's AsyncSession
       (see routes/dependencies.py), so services hold no state between requests.

Service Inventory:
    - IdentityService: signup and login, credential issuing
    - AccessGuard:     bearer credential → caller Identity
    - ListingService:  listing CRUD, ownership-gated mutation, explicit delete cascade
    - OfferService:    swap-offer proposal and owner-driven state machine
    - ownership:       assert_owner_or_forbidden, shared by listings and offers
"""
