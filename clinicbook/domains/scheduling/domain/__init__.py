"""Scheduling domain layer: entities, value objects, domain services and exceptions."""
