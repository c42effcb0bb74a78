"""
Core infrastructure for the video asset service.

- auth: Bearer credential verification (HS256 JWT)
- database: MongoDB async client with Motor driver and connection pooling

Both are async and follow the singleton pattern for resource management.
"""
