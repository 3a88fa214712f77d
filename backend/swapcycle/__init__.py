"""
SwapCycle Backend — Application Package Initializer
===================================================

What: Marks the `swapcycle` directory as a Python package.
Who:  Imported by uvicorn (`swapcycle.main:app`), Alembic, and pytest.

Architecture Note:
    The backend is a thin layered CRUD service for a peer-to-peer swap marketplace:

    ┌─────────────────────────────────────┐
    │     Routes + Access Guard (HTTP)    │  ← status codes, bearer credentials
    ├─────────────────────────────────────┤
    │   Identity / Listing / Offer Svcs   │  ← ownership rules, offer state machine
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← injected async store client
    └─────────────────────────────────────┘

    Services never see HTTP objects; routes never touch the ORM directly.
"""

__version__ = "1.0.0"
