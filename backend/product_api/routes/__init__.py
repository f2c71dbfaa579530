# Routes package init
"""
Product API Backend — API Routes Package
=========================================

Route Inventory:
    - products.py: /api/products CRUD, list and stats (router built per Settings)
    - health.py:   GET /health (document store ping)

The root welcome text and the not-found fallback live in main.py.

Routes stay thin: pick inputs off the request, run the route's pipeline,
call ProductService, return the response model.
"""
