"""
Scheduling domain services.

Import from the submodules directly:
- appointment_state_machine: AppointmentStateMachine
- availability_calendar: AvailabilityCalendar
- slot_generator: SlotGenerator
"""
