"""Scheduling application layer: ports, DTOs, application services and use cases."""
