"""
Product API Backend — Middleware Package
=========================================

Two layers of request interception:

Application middleware (every request, registered in main.py):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Router

Route pipelines (per route, explicit lists in routes/products.py):
    GET    → [log_request]
    POST   → [log_request] → [ApiKeyAuthenticator] → [validate_payload]
    PUT    → [log_request] → [ApiKeyAuthenticator] → [validate_payload]
    DELETE → [log_request] → [ApiKeyAuthenticator]

A pipeline stage may short-circuit with a Rejection; later stages and the
handler then never run.
"""
