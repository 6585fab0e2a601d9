# Services package init
"""
SocialFeed Backend - Services Layer
=====================================

What:  Business logic between the routes (HTTP) and the database.

Service Inventory:
    - AccountService: signup, lookup, bcrypt credential checks
    - TokenService:   signs and verifies session tokens (PyJWT)
    - PostService:    the feed aggregate and its optimistic mutation protocol
    - FileService:    post image validation, storage, cleanup and lookup

Each module exposes a singleton (`account_service`, `token_service`,
`post_service`, `file_service`) that routes import directly.
"""
