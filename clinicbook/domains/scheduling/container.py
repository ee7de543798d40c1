"""
Scheduling Domain Container.

Single Responsibility: Wire all scheduling domain dependencies.
"""

import logging

from clinicbook.config.settings import Settings, get_settings
from clinicbook.domains.scheduling.application.ports import IContactDirectory, INotificationGateway
from clinicbook.domains.scheduling.application.services.booking_ledger import BookingLedger
from clinicbook.domains.scheduling.application.services.completion_orchestrator import CompletionOrchestrator
from clinicbook.domains.scheduling.application.services.patient_notifier import PatientNotifier
from clinicbook.domains.scheduling.application.use_cases import (
    AddAvailabilityExceptionUseCase,
    ApproveAvailabilityExceptionUseCase,
    BookAppointmentUseCase,
    CancelAppointmentUseCase,
    CompleteAppointmentUseCase,
    ConfirmAppointmentUseCase,
    FindNextAvailableUseCase,
    GetAvailableSlotsUseCase,
    GetProviderScheduleUseCase,
    MarkPaymentRequestPaidUseCase,
    RescheduleAppointmentUseCase,
    ResendPaymentRequestUseCase,
    SendDueRemindersUseCase,
    SetWeeklyAvailabilityUseCase,
)
from clinicbook.domains.scheduling.domain.services.appointment_state_machine import AppointmentStateMachine
from clinicbook.domains.scheduling.domain.services.slot_generator import SlotGenerator
from clinicbook.domains.scheduling.infrastructure.notifications import (
    EmailNotificationGateway,
    LoggingNotificationGateway,
)
from clinicbook.domains.scheduling.infrastructure.repositories import (
    SQLAlchemyAppointmentRepository,
    SQLAlchemyBillingRepository,
    SQLAlchemyClinicalNoteRepository,
    SQLAlchemyContactDirectory,
    SQLAlchemyPrescriptionRepository,
    SQLAlchemyProviderScheduleRepository,
    SQLAlchemyTreatmentPlanRepository,
)

logger = logging.getLogger(__name__)


class SchedulingContainer:
    """
    Scheduling domain container.

    Single Responsibility: Create scheduling repositories, services and use cases.
    Stateless collaborators (state machine, slot generator, gateway) are shared;
    everything bound to a session is created per call.
    """

    def __init__(self, settings: Settings | None = None, gateway: INotificationGateway | None = None):
        """
        Initialize scheduling container.

        Args:
            settings: Application settings (defaults to get_settings())
            gateway: Notification gateway override
        """
        self.settings = settings or get_settings()
        self.state_machine = AppointmentStateMachine(
            self_service_initial=self.settings.SELF_SERVICE_INITIAL_STATUS,
            staff_initial=self.settings.STAFF_INITIAL_STATUS,
        )
        self.slot_generator = SlotGenerator()
        self.gateway = gateway or self._create_gateway()

    def _create_gateway(self) -> INotificationGateway:
        if self.settings.EMAIL_API_KEY:
            return EmailNotificationGateway(
                api_url=self.settings.EMAIL_API_URL,
                api_key=self.settings.EMAIL_API_KEY,
                from_address=self.settings.EMAIL_FROM_ADDRESS,
                timeout=self.settings.EMAIL_TIMEOUT,
            )
        logger.warning("EMAIL_API_KEY not set, patient emails are logged and dropped")
        return LoggingNotificationGateway()

    # ==================== REPOSITORIES ====================

    def create_appointment_repository(self, db) -> SQLAlchemyAppointmentRepository:
        """Create Appointment Repository."""
        return SQLAlchemyAppointmentRepository(session=db)

    def create_schedule_repository(self, db) -> SQLAlchemyProviderScheduleRepository:
        """Create Provider Schedule Repository."""
        return SQLAlchemyProviderScheduleRepository(session=db)

    def create_note_repository(self, db) -> SQLAlchemyClinicalNoteRepository:
        return SQLAlchemyClinicalNoteRepository(session=db)

    def create_billing_repository(self, db) -> SQLAlchemyBillingRepository:
        return SQLAlchemyBillingRepository(session=db)

    def create_prescription_repository(self, db) -> SQLAlchemyPrescriptionRepository:
        return SQLAlchemyPrescriptionRepository(session=db)

    def create_treatment_plan_repository(self, db) -> SQLAlchemyTreatmentPlanRepository:
        return SQLAlchemyTreatmentPlanRepository(session=db)

    def create_contact_directory(self, db) -> IContactDirectory:
        return SQLAlchemyContactDirectory(session=db)

    # ==================== SERVICES ====================

    def create_booking_ledger(self, db) -> BookingLedger:
        """Create BookingLedger bound to a session."""
        return BookingLedger(
            appointment_repository=self.create_appointment_repository(db),
            schedule_repository=self.create_schedule_repository(db),
            state_machine=self.state_machine,
            slot_generator=self.slot_generator,
            default_duration_minutes=self.settings.DEFAULT_APPOINTMENT_DURATION_MINUTES,
        )

    def create_patient_notifier(self, db) -> PatientNotifier:
        return PatientNotifier(
            gateway=self.gateway,
            contacts=self.create_contact_directory(db),
            timeout_seconds=self.settings.SIDE_EFFECT_TIMEOUT_SECONDS,
            currency=self.settings.CURRENCY,
        )

    def create_completion_orchestrator(self, db) -> CompletionOrchestrator:
        """Create CompletionOrchestrator with all collaborators."""
        return CompletionOrchestrator(
            appointment_repository=self.create_appointment_repository(db),
            note_repository=self.create_note_repository(db),
            billing_repository=self.create_billing_repository(db),
            prescription_repository=self.create_prescription_repository(db),
            treatment_plan_repository=self.create_treatment_plan_repository(db),
            ledger=self.create_booking_ledger(db),
            notifier=self.create_patient_notifier(db),
            state_machine=self.state_machine,
            side_effect_timeout_seconds=self.settings.SIDE_EFFECT_TIMEOUT_SECONDS,
            currency=self.settings.CURRENCY,
        )

    # ==================== USE CASES ====================

    def create_get_available_slots_use_case(self, db) -> GetAvailableSlotsUseCase:
        return GetAvailableSlotsUseCase(
            schedule_repository=self.create_schedule_repository(db),
            appointment_repository=self.create_appointment_repository(db),
            slot_generator=self.slot_generator,
        )

    def create_find_next_available_use_case(self, db) -> FindNextAvailableUseCase:
        return FindNextAvailableUseCase(
            schedule_repository=self.create_schedule_repository(db),
            appointment_repository=self.create_appointment_repository(db),
            slot_generator=self.slot_generator,
            search_days=self.settings.NEXT_AVAILABLE_SEARCH_DAYS,
        )

    def create_book_appointment_use_case(self, db) -> BookAppointmentUseCase:
        """Create BookAppointmentUseCase with dependencies."""
        return BookAppointmentUseCase(
            ledger=self.create_booking_ledger(db),
            notifier=self.create_patient_notifier(db),
        )

    def create_confirm_appointment_use_case(self, db) -> ConfirmAppointmentUseCase:
        return ConfirmAppointmentUseCase(ledger=self.create_booking_ledger(db))

    def create_cancel_appointment_use_case(self, db) -> CancelAppointmentUseCase:
        return CancelAppointmentUseCase(ledger=self.create_booking_ledger(db))

    def create_reschedule_appointment_use_case(self, db) -> RescheduleAppointmentUseCase:
        return RescheduleAppointmentUseCase(ledger=self.create_booking_ledger(db))

    def create_complete_appointment_use_case(self, db) -> CompleteAppointmentUseCase:
        return CompleteAppointmentUseCase(orchestrator=self.create_completion_orchestrator(db))

    def create_resend_payment_request_use_case(self, db) -> ResendPaymentRequestUseCase:
        return ResendPaymentRequestUseCase(
            billing_repository=self.create_billing_repository(db),
            notifier=self.create_patient_notifier(db),
        )

    def create_mark_payment_request_paid_use_case(self, db) -> MarkPaymentRequestPaidUseCase:
        return MarkPaymentRequestPaidUseCase(billing_repository=self.create_billing_repository(db))

    def create_send_due_reminders_use_case(self, db) -> SendDueRemindersUseCase:
        return SendDueRemindersUseCase(
            appointment_repository=self.create_appointment_repository(db),
            notifier=self.create_patient_notifier(db),
            schedule_repository=self.create_schedule_repository(db),
            lead_hours=self.settings.REMINDER_LEAD_HOURS,
            window_minutes=self.settings.REMINDER_WINDOW_MINUTES,
        )

    def create_get_provider_schedule_use_case(self, db) -> GetProviderScheduleUseCase:
        return GetProviderScheduleUseCase(schedule_repository=self.create_schedule_repository(db))

    def create_set_weekly_availability_use_case(self, db) -> SetWeeklyAvailabilityUseCase:
        return SetWeeklyAvailabilityUseCase(schedule_repository=self.create_schedule_repository(db))

    def create_add_availability_exception_use_case(self, db) -> AddAvailabilityExceptionUseCase:
        return AddAvailabilityExceptionUseCase(schedule_repository=self.create_schedule_repository(db))

    def create_approve_availability_exception_use_case(self, db) -> ApproveAvailabilityExceptionUseCase:
        return ApproveAvailabilityExceptionUseCase(schedule_repository=self.create_schedule_repository(db))


_container: SchedulingContainer | None = None


def get_scheduling_container() -> SchedulingContainer:
    """Get the process-wide scheduling container."""
    global _container
    if _container is None:
        _container = SchedulingContainer()
    return _container


def reset_scheduling_container() -> None:
    global _container
    _container = None
