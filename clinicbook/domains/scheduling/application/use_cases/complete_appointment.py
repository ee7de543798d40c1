"""
Complete Appointment Use Case

Entry point for the completion workflow.
"""

from clinicbook.domains.scheduling.application.dto.completion import CompletionRequest, CompletionResult
from clinicbook.domains.scheduling.application.services.completion_orchestrator import CompletionOrchestrator


class CompleteAppointmentUseCase:
    """Use case for completing an appointment with its clinical and billing artifacts."""

    def __init__(self, orchestrator: CompletionOrchestrator):
        self.orchestrator = orchestrator

    async def execute(self, appointment_id: str, request: CompletionRequest) -> CompletionResult:
        """
        Execute the completion workflow.

        Raises:
            CompletionError: the appointment was left unchanged; the error
                carries the original request for a retry
        """
        return await self.orchestrator.complete(appointment_id, request)
