"""Payload sources and exports."""
