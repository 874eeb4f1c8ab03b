"""Shared helpers for logging and message formatting."""
