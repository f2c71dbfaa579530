"""
Product API Backend — Application Package Initializer
=====================================================

What: Marks the `product_api` directory as a Python package.
Who:  Used by uvicorn (`product_api.main:app`), pytest and the console script.

Architecture Note:
    The backend is one layer of routing glue over a document store:

    ┌─────────────────────────────────────┐
    │   Routes + Pipeline (API Layer)     │  ← logger → auth → validator
    ├─────────────────────────────────────┤
    │      ProductService (Business)      │  ← pagination, not-found folding
    ├─────────────────────────────────────┤
    │     Models & Schemas (Data)         │  ← document shape + pydantic contracts
    ├─────────────────────────────────────┤
    │   ProductGateway (Persistence)      │  ← MongoDB via motor
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
