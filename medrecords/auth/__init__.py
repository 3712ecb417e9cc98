"""
Authentication module for the medical records system.

This module provides authentication and authorization functionality including:
- User registration with role-specific required fields
- Login with enumeration-resistant failures
- Rotating, single-use refresh tokens stored only as hashes
- Refresh token revocation
- Bearer access token verification and role-based access control
"""
