"""Health-store sync for MotionFuse sessions.

Modules:
    health_sync — record building, sink interface, HTTP sink, best-effort pusher
"""
