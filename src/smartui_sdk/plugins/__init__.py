"""Pytest integration."""
