"""Shared helpers: HTTP requests and logging."""
