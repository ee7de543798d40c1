"""
In-Memory Repository Implementations

Dict-backed implementations of the scheduling ports for development and testing.
Entities are copied on the way in and out so callers never share state with
the store, which keeps save_if_status a real compare-and-set.
"""

import logging
from copy import deepcopy
from datetime import datetime

from clinicbook.core.domain import generate_uuid_str
from clinicbook.domains.scheduling.application.ports import (
    IAppointmentRepository,
    IBillingRepository,
    IClinicalNoteRepository,
    IContactDirectory,
    IPrescriptionRepository,
    IProviderScheduleRepository,
    ITreatmentPlanRepository,
)
from clinicbook.domains.scheduling.domain.entities import (
    Appointment,
    ClinicalNote,
    Invoice,
    PatientContact,
    PaymentRequest,
    Prescription,
    ProviderSchedule,
    TreatmentPlan,
)
from clinicbook.domains.scheduling.domain.exceptions import SlotConflict
from clinicbook.domains.scheduling.domain.value_objects import AppointmentStatus, intervals_overlap

logger = logging.getLogger(__name__)


class InMemoryAppointmentRepository(IAppointmentRepository):
    """
    In-memory appointment store with the same uniqueness rule as the database index.

    Provider locks behave like transaction-scoped locks: held from lock_provider
    until the next write or release_provider.
    """

    def __init__(self):
        self._appointments: dict[str, Appointment] = {}
        self.held_provider_locks: set[str] = set()

    async def find_by_id(self, appointment_id: str) -> Appointment | None:
        appointment = self._appointments.get(appointment_id)
        return deepcopy(appointment) if appointment else None

    async def find_by_provider(
        self,
        provider_id: str,
        range_start: datetime,
        range_end: datetime,
        occupying_only: bool = True,
    ) -> list[Appointment]:
        found = [
            a
            for a in self._appointments.values()
            if a.provider_id == provider_id
            and intervals_overlap(a.start_at, a.end_at, range_start, range_end)
            and (a.occupies_time() or not occupying_only)
        ]
        found.sort(key=lambda a: a.start_at)
        return deepcopy(found)

    async def find_starting_between(
        self,
        range_start: datetime,
        range_end: datetime,
        statuses: tuple[AppointmentStatus, ...] = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED),
    ) -> list[Appointment]:
        found = [
            a for a in self._appointments.values() if range_start <= a.start_at < range_end and a.status in statuses
        ]
        found.sort(key=lambda a: a.start_at)
        return deepcopy(found)

    async def find_conflicts(
        self,
        provider_id: str,
        start_at: datetime,
        end_at: datetime,
        exclude_appointment_id: str | None = None,
    ) -> list[Appointment]:
        found = [
            a
            for a in await self.find_by_provider(provider_id, start_at, end_at)
            if a.id != exclude_appointment_id
        ]
        return found

    async def lock_provider(self, provider_id: str) -> None:
        self.held_provider_locks.add(provider_id)

    async def release_provider(self, provider_id: str) -> None:
        self.held_provider_locks.discard(provider_id)

    def _end_transaction(self) -> None:
        self.held_provider_locks.clear()

    def _check_unique_start(self, appointment: Appointment) -> None:
        if not appointment.occupies_time():
            return
        for other in self._appointments.values():
            if (
                other.id != appointment.id
                and other.occupies_time()
                and other.provider_id == appointment.provider_id
                and other.start_at == appointment.start_at
            ):
                raise SlotConflict(
                    provider_id=appointment.provider_id,
                    start_at=appointment.start_at,
                    end_at=appointment.end_at,
                    conflicting_appointment_id=other.id,
                )

    async def add(self, appointment: Appointment) -> Appointment:
        if appointment.id is None:
            appointment.id = generate_uuid_str()
        try:
            self._check_unique_start(appointment)
        finally:
            self._end_transaction()
        self._appointments[appointment.id] = deepcopy(appointment)
        return deepcopy(appointment)

    async def save(self, appointment: Appointment) -> Appointment:
        if appointment.id is None:
            return await self.add(appointment)
        try:
            self._check_unique_start(appointment)
        finally:
            self._end_transaction()
        self._appointments[appointment.id] = deepcopy(appointment)
        return deepcopy(appointment)

    async def save_if_status(self, appointment: Appointment, expected_status: AppointmentStatus) -> bool:
        try:
            return self._compare_and_set(appointment, expected_status)
        finally:
            self._end_transaction()

    def _compare_and_set(self, appointment: Appointment, expected_status: AppointmentStatus) -> bool:
        stored = self._appointments.get(appointment.id)
        if stored is None or stored.status != expected_status:
            logger.info(f"Appointment {appointment.id} was no longer {expected_status.value}")
            return False
        self._check_unique_start(appointment)
        appointment.version = stored.version + 1
        self._appointments[appointment.id] = deepcopy(appointment)
        return True

    async def delete(self, appointment_id: str) -> bool:
        return self._appointments.pop(appointment_id, None) is not None

    def all(self) -> list[Appointment]:
        return deepcopy(list(self._appointments.values()))


class InMemoryProviderScheduleRepository(IProviderScheduleRepository):
    def __init__(self, schedules: list[ProviderSchedule] | None = None):
        self._schedules: dict[str, ProviderSchedule] = {}
        for schedule in schedules or []:
            self._schedules[schedule.provider_id] = deepcopy(schedule)

    async def find_by_provider_id(self, provider_id: str) -> ProviderSchedule | None:
        schedule = self._schedules.get(provider_id)
        return deepcopy(schedule) if schedule else None

    async def save(self, schedule: ProviderSchedule) -> ProviderSchedule:
        schedule.increment_version()
        self._schedules[schedule.provider_id] = deepcopy(schedule)
        return deepcopy(schedule)


class InMemoryClinicalNoteRepository(IClinicalNoteRepository):
    def __init__(self):
        self._notes: dict[str, ClinicalNote] = {}

    async def add(self, note: ClinicalNote) -> ClinicalNote:
        note.id = note.id or generate_uuid_str()
        self._notes[note.id] = deepcopy(note)
        return note

    async def find_by_appointment(self, appointment_id: str) -> list[ClinicalNote]:
        return deepcopy([n for n in self._notes.values() if n.appointment_id == appointment_id])

    async def delete(self, note_id: str) -> bool:
        return self._notes.pop(note_id, None) is not None


class InMemoryBillingRepository(IBillingRepository):
    def __init__(self):
        self._invoices: dict[str, Invoice] = {}
        self._payment_requests: dict[str, PaymentRequest] = {}

    async def add_invoice(self, invoice: Invoice) -> Invoice:
        invoice.id = invoice.id or generate_uuid_str()
        self._invoices[invoice.id] = deepcopy(invoice)
        return invoice

    async def find_invoices_by_appointment(self, appointment_id: str) -> list[Invoice]:
        return deepcopy([i for i in self._invoices.values() if i.appointment_id == appointment_id])

    async def delete_invoice(self, invoice_id: str) -> bool:
        return self._invoices.pop(invoice_id, None) is not None

    async def add_payment_request(self, payment_request: PaymentRequest) -> PaymentRequest:
        payment_request.id = payment_request.id or generate_uuid_str()
        self._payment_requests[payment_request.id] = deepcopy(payment_request)
        return payment_request

    async def find_payment_request(self, payment_request_id: str) -> PaymentRequest | None:
        payment_request = self._payment_requests.get(payment_request_id)
        return deepcopy(payment_request) if payment_request else None

    async def find_payment_requests_by_appointment(self, appointment_id: str) -> list[PaymentRequest]:
        return deepcopy([p for p in self._payment_requests.values() if p.appointment_id == appointment_id])

    async def save_payment_request(self, payment_request: PaymentRequest) -> PaymentRequest:
        if payment_request.id is None:
            return await self.add_payment_request(payment_request)
        self._payment_requests[payment_request.id] = deepcopy(payment_request)
        return payment_request

    async def delete_payment_request(self, payment_request_id: str) -> bool:
        return self._payment_requests.pop(payment_request_id, None) is not None


class InMemoryPrescriptionRepository(IPrescriptionRepository):
    def __init__(self):
        self._prescriptions: dict[str, Prescription] = {}

    async def add(self, prescription: Prescription) -> Prescription:
        prescription.id = prescription.id or generate_uuid_str()
        self._prescriptions[prescription.id] = deepcopy(prescription)
        return prescription

    async def find_by_appointment(self, appointment_id: str) -> list[Prescription]:
        return deepcopy([p for p in self._prescriptions.values() if p.appointment_id == appointment_id])

    async def delete(self, prescription_id: str) -> bool:
        return self._prescriptions.pop(prescription_id, None) is not None


class InMemoryTreatmentPlanRepository(ITreatmentPlanRepository):
    def __init__(self, plans: list[TreatmentPlan] | None = None):
        self._plans: dict[str, TreatmentPlan] = {}
        for plan in plans or []:
            self._plans[plan.id] = deepcopy(plan)

    async def find_by_id(self, plan_id: str) -> TreatmentPlan | None:
        plan = self._plans.get(plan_id)
        return deepcopy(plan) if plan else None

    async def add(self, plan: TreatmentPlan) -> TreatmentPlan:
        plan.id = plan.id or generate_uuid_str()
        self._plans[plan.id] = deepcopy(plan)
        return plan

    async def delete(self, plan_id: str) -> bool:
        return self._plans.pop(plan_id, None) is not None

    def all(self) -> list[TreatmentPlan]:
        return deepcopy(list(self._plans.values()))


class InMemoryContactDirectory(IContactDirectory):
    def __init__(self, contacts: list[PatientContact] | None = None):
        self._contacts = {c.patient_id: c for c in contacts or []}

    def register(self, contact: PatientContact) -> None:
        self._contacts[contact.patient_id] = contact

    async def get_contact(self, patient_id: str) -> PatientContact | None:
        return self._contacts.get(patient_id)
