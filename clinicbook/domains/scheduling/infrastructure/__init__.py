"""Scheduling infrastructure: persistence, repositories and notification adapters."""
