"""
Medical records backend: authentication, profiles and realtime notifications.
"""
