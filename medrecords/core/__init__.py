"""
Shared infrastructure: security, middleware and object storage.
"""
