"""Shared helpers: clock, exceptions, logging and FastAPI dependencies."""
