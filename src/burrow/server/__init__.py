"""ASGI transport, dispatcher and background tasks."""
