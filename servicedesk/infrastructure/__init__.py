"""Shared infrastructure: database engine, sessions and persistence helpers."""
