"""Utility helpers shared by the engine and the API."""
