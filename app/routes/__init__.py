# Routes package init
"""
SocialFeed Backend - API Routes Package
=========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - auth.py:    POST /api/auth/signup, POST /api/auth/login, GET /api/auth/me
    - posts.py:   GET/POST /api/posts, PATCH/DELETE /api/posts/{id},
                  POST /api/posts/{id}/like, POST /api/posts/{id}/comment
    - files.py:   GET  /api/files/{path}      (stored post images)
    - health.py:  GET  /health                (service health check)

Routes stay thin: read the request, call a service, return its result.
Errors are raised by services and formatted by the handlers in main.py.
"""
