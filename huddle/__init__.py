"""
Huddle

Channel group chat and two-party video calling over a single WebSocket.
"""
