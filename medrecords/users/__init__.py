"""
Profile endpoints for authenticated users.
"""
