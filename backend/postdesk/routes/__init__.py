# Routes package init
"""
PostDesk Backend — API Routes Package
=======================================

Route Inventory:
    - users.py:   POST/GET /users, GET /users/search, GET/PATCH/DELETE /users/{id}
    - posts.py:   POST/GET /posts, GET/PATCH/DELETE /posts/{id}
    - health.py:  GET /health

Routes stay thin: read the request, call a service, wrap the result in the
success envelope. Failures are raised, never turned into responses here.
"""
