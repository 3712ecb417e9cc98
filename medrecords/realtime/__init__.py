"""
Realtime delivery over websockets: per-user rooms and pushed events.
"""
