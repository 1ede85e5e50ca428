"""
Channel chat, read receipts and call signaling.
"""
