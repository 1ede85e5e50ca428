"""
WebSocket middleware for the huddle realtime endpoint.
"""
