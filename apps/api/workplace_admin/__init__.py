"""Workplace admin console and install flows."""
