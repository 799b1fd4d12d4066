"""Helpers shared by the handler and ASGI front ends."""
