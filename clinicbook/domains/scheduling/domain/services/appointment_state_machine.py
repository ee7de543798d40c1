"""
Appointment State Machine

Single authority over appointment status changes and the initial status of new bookings.
"""

from ..exceptions import InvalidTransition, ValidationError
from ..value_objects.appointment_status import AppointmentStatus, BookingChannel


class AppointmentStateMachine:
    """
    Validates appointment status transitions.

    pending -> confirmed; pending|confirmed -> cancelled;
    pending|confirmed -> completed (completion workflow only).
    Nothing leaves completed or cancelled.

    Example:
        ```python
        machine = AppointmentStateMachine(self_service_initial="pending")
        status = machine.initial_status(BookingChannel.SELF_SERVICE)
        machine.ensure_transition(status, AppointmentStatus.CONFIRMED)
        ```
    """

    def __init__(
        self,
        self_service_initial: str = AppointmentStatus.PENDING.value,
        staff_initial: str = AppointmentStatus.CONFIRMED.value,
    ):
        self._initial_by_channel = {
            BookingChannel.SELF_SERVICE: self._parse_initial(self_service_initial),
            BookingChannel.ASSISTANT: self._parse_initial(self_service_initial),
            BookingChannel.STAFF: self._parse_initial(staff_initial),
        }

    @staticmethod
    def _parse_initial(value: str) -> AppointmentStatus:
        try:
            status = AppointmentStatus.from_string(value)
        except ValueError as e:
            raise ValidationError(str(e), field="initial_status") from e
        if not status.is_active():
            raise ValidationError(
                f"Initial status must be pending or confirmed, got '{value}'",
                field="initial_status",
            )
        return status

    def initial_status(self, channel: BookingChannel) -> AppointmentStatus:
        """Get the status a new booking starts in for the given channel."""
        return self._initial_by_channel[channel]

    def can_transition(
        self,
        current: AppointmentStatus,
        target: AppointmentStatus,
        via_completion: bool = False,
    ) -> bool:
        """Check if a transition is allowed."""
        if target == AppointmentStatus.COMPLETED and not via_completion:
            return False
        return current.can_transition_to(target)

    def ensure_transition(
        self,
        current: AppointmentStatus,
        target: AppointmentStatus,
        via_completion: bool = False,
    ) -> None:
        """
        Raise InvalidTransition unless the transition is allowed.

        Args:
            current: Current status
            target: Requested status
            via_completion: True only when called from the completion workflow
        """
        if not self.can_transition(current, target, via_completion=via_completion):
            raise InvalidTransition(current.value, target.value)


default_state_machine = AppointmentStateMachine()
