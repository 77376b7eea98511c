"""Adapters for external systems: the linkding REST API."""
