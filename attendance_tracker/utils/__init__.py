"""Shared helpers, validators and errors."""
