"""Capture, location and delivery modules."""
