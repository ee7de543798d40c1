"""
Scheduling SQLAlchemy Models

Database models for scheduling domain persistence.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship

from clinicbook.database.base import Base, TimestampMixin
from clinicbook.domains.scheduling.domain.value_objects.appointment_status import (
    AppointmentStatus,
    BookingChannel,
    ClinicalNoteKind,
    ExceptionKind,
    PaymentStatus,
    PrescriptionStatus,
    TreatmentPlanPriority,
    TreatmentPlanStatus,
    Urgency,
)

# Statuses whose interval is reserved; mirrors AppointmentStatus.occupies_time().
OCCUPYING_STATUS_SQL = "status IN ('pending', 'confirmed', 'completed')"


def _enum(enum_cls, name: str) -> SQLEnum:
    """Store enum values (not member names) as VARCHAR."""
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


class ProviderModel(Base, TimestampMixin):
    """SQLAlchemy model for the ProviderSchedule aggregate."""

    __tablename__ = "providers"

    id = Column(String(64), primary_key=True)
    business_id = Column(String(64), nullable=False, default="", index=True)
    display_name = Column(String(200), nullable=False, default="")
    default_slot_minutes = Column(Integer, nullable=False, default=30)
    version = Column(Integer, nullable=False, default=0)

    windows = relationship(
        "AvailabilityWindowModel",
        back_populates="provider",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    emergency_windows = relationship(
        "EmergencyWindowModel",
        back_populates="provider",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    exceptions = relationship(
        "AvailabilityExceptionModel",
        back_populates="provider",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class AvailabilityWindowModel(Base):
    """Recurring weekly working window with optional break."""

    __tablename__ = "provider_availability_windows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(String(64), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0=Monday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    break_start = Column(Time, nullable=True)
    break_end = Column(Time, nullable=True)

    provider = relationship("ProviderModel", back_populates="windows")


class EmergencyWindowModel(Base):
    """Recurring time kept for urgent bookings."""

    __tablename__ = "provider_emergency_windows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider_id = Column(String(64), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    provider = relationship("ProviderModel", back_populates="emergency_windows")


class AvailabilityExceptionModel(Base, TimestampMixin):
    """Dated absence of a provider (inclusive range)."""

    __tablename__ = "provider_availability_exceptions"

    id = Column(String(36), primary_key=True)
    provider_id = Column(String(64), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    approved = Column(Boolean, nullable=False, default=False)
    kind = Column(_enum(ExceptionKind, "exception_kind"), nullable=False, default=ExceptionKind.VACATION)
    reason = Column(Text, nullable=False, default="")

    provider = relationship("ProviderModel", back_populates="exceptions")


class AppointmentModel(Base, TimestampMixin):
    """SQLAlchemy model for Appointment entity."""

    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_provider_window", "provider_id", "start_at", "end_at"),
        # Second line of defence behind the booking lock: one occupying appointment per provider start.
        Index(
            "uq_appointments_provider_start_occupying",
            "provider_id",
            "start_at",
            unique=True,
            postgresql_where=text(OCCUPYING_STATUS_SQL),
            sqlite_where=text(OCCUPYING_STATUS_SQL),
        ),
    )

    id = Column(String(36), primary_key=True)

    # References
    patient_id = Column(String(64), nullable=False, index=True)
    provider_id = Column(String(64), ForeignKey("providers.id"), nullable=False)
    business_id = Column(String(64), nullable=True)

    # Scheduling (naive local clinic time)
    start_at = Column(DateTime(timezone=False), nullable=False)
    end_at = Column(DateTime(timezone=False), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)

    # Classification
    status = Column(_enum(AppointmentStatus, "appointment_status"), nullable=False, default=AppointmentStatus.PENDING)
    urgency = Column(_enum(Urgency, "appointment_urgency"), nullable=False, default=Urgency.LOW)
    booking_channel = Column(
        _enum(BookingChannel, "booking_channel"), nullable=False, default=BookingChannel.SELF_SERVICE
    )

    # Clinical information
    reason = Column(Text, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    consultation_notes = Column(Text, nullable=True)
    treatment_plan_id = Column(String(36), nullable=True, index=True)
    follow_up_of_id = Column(String(36), nullable=True)

    # Timestamps
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation / completion
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(50), nullable=True)
    completed_by = Column(String(100), nullable=True)

    version = Column(Integer, nullable=False, default=0)


class ClinicalNoteModel(Base, TimestampMixin):
    __tablename__ = "clinical_notes"

    id = Column(String(36), primary_key=True)
    appointment_id = Column(String(36), nullable=False, index=True)
    patient_id = Column(String(64), nullable=False, index=True)
    provider_id = Column(String(64), nullable=False)
    kind = Column(_enum(ClinicalNoteKind, "clinical_note_kind"), nullable=False)
    content = Column(Text, nullable=False)


class InvoiceModel(Base, TimestampMixin):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True)
    appointment_id = Column(String(36), nullable=False, index=True)
    patient_id = Column(String(64), nullable=False, index=True)
    provider_id = Column(String(64), nullable=False)
    total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    status = Column(_enum(PaymentStatus, "invoice_status"), nullable=False, default=PaymentStatus.PAID)
    issued_at = Column(DateTime(timezone=True), nullable=False)

    items = relationship(
        "InvoiceItemModel",
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoiceItemModel.position",
    )


class InvoiceItemModel(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=False)
    tooth_ref = Column(String(20), nullable=True)
    price_cents = Column(Integer, nullable=False)

    invoice = relationship("InvoiceModel", back_populates="items")


class PaymentRequestModel(Base, TimestampMixin):
    __tablename__ = "payment_requests"

    id = Column(String(36), primary_key=True)
    appointment_id = Column(String(36), nullable=False, index=True)
    patient_id = Column(String(64), nullable=False, index=True)
    provider_id = Column(String(64), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    status = Column(_enum(PaymentStatus, "payment_request_status"), nullable=False, default=PaymentStatus.PENDING)
    recipient_contact = Column(String(255), nullable=True)
    description = Column(Text, nullable=False, default="")
    sent_count = Column(Integer, nullable=False, default=0)
    last_sent_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)


class PrescriptionModel(Base, TimestampMixin):
    __tablename__ = "prescriptions"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(64), nullable=False, index=True)
    provider_id = Column(String(64), nullable=False)
    appointment_id = Column(String(36), nullable=True, index=True)
    medication = Column(String(200), nullable=False)
    dosage = Column(String(100), nullable=False, default="")
    frequency = Column(String(100), nullable=False, default="")
    duration_text = Column(String(100), nullable=False, default="")
    instructions = Column(Text, nullable=False, default="")
    status = Column(_enum(PrescriptionStatus, "prescription_status"), nullable=False, default=PrescriptionStatus.ACTIVE)
    prescribed_at = Column(DateTime(timezone=True), nullable=False)


class TreatmentPlanModel(Base, TimestampMixin):
    __tablename__ = "treatment_plans"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(64), nullable=False, index=True)
    provider_id = Column(String(64), nullable=False)
    title = Column(String(200), nullable=False)
    diagnosis = Column(Text, nullable=False, default="")
    priority = Column(
        _enum(TreatmentPlanPriority, "treatment_plan_priority"), nullable=False, default=TreatmentPlanPriority.MEDIUM
    )
    estimated_cost_cents = Column(Integer, nullable=False, default=0)
    status = Column(
        _enum(TreatmentPlanStatus, "treatment_plan_status"), nullable=False, default=TreatmentPlanStatus.ACTIVE
    )
    start_date = Column(Date, nullable=False)


class PatientContactModel(Base, TimestampMixin):
    """Read-only projection of patient profiles maintained by the profile service."""

    __tablename__ = "patient_contacts"

    patient_id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False, default="")
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
