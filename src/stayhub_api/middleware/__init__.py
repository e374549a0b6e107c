"""ASGI middleware for the StayHub API."""
