"""
Notifications stored for users and pushed over the realtime channel.
"""
