"""
Scheduling Domain

Availability, booking, appointment lifecycle and the completion workflow.
"""
