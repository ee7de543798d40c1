"""Scheduling schema - providers, appointments and completion records.

Revision ID: 001_scheduling_schema
Revises: None
Create Date: 2025-03-01

Tables created:
- providers and their availability windows, emergency windows and exceptions
- appointments (one occupying appointment per provider start)
- clinical_notes, invoices, invoice_items, payment_requests
- prescriptions, treatment_plans
- patient_contacts (projection read by notifications)
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_scheduling_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OCCUPYING_STATUS_SQL = "status IN ('pending', 'confirmed', 'completed')"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _status(name: str) -> sa.Column:
    return sa.Column(name, sa.String(32), nullable=False)


def upgrade() -> None:
    """Create scheduling tables."""

    # =========================================================================
    # Providers and availability
    # =========================================================================
    op.create_table(
        "providers",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("business_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("display_name", sa.String(200), nullable=False, server_default=""),
        sa.Column("default_slot_minutes", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )
    op.create_index("ix_providers_business_id", "providers", ["business_id"])

    op.create_table(
        "provider_availability_windows",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "provider_id",
            sa.String(64),
            sa.ForeignKey("providers.id", ondelete="CASCADE"),
            nullable=False,
            comment="Owning provider",
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False, comment="0=Monday"),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("break_start", sa.Time(), nullable=True),
        sa.Column("break_end", sa.Time(), nullable=True),
    )
    op.create_index(
        "ix_provider_availability_windows_provider_id", "provider_availability_windows", ["provider_id"]
    )

    op.create_table(
        "provider_emergency_windows",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("provider_id", sa.String(64), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
    )
    op.create_index("ix_provider_emergency_windows_provider_id", "provider_emergency_windows", ["provider_id"])

    op.create_table(
        "provider_availability_exceptions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("provider_id", sa.String(64), sa.ForeignKey("providers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False, comment="Inclusive"),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        _status("kind"),
        sa.Column("reason", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index(
        "ix_provider_availability_exceptions_provider_id", "provider_availability_exceptions", ["provider_id"]
    )

    # =========================================================================
    # Appointments
    # =========================================================================
    op.create_table(
        "appointments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("patient_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(64), sa.ForeignKey("providers.id"), nullable=False),
        sa.Column("business_id", sa.String(64), nullable=True),
        sa.Column("start_at", sa.DateTime(timezone=False), nullable=False, comment="Local clinic time"),
        sa.Column("end_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default=sa.text("30")),
        _status("status"),
        _status("urgency"),
        _status("booking_channel"),
        sa.Column("reason", sa.Text(), nullable=False, server_default=""),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("consultation_notes", sa.Text(), nullable=True),
        sa.Column("treatment_plan_id", sa.String(36), nullable=True),
        sa.Column("follow_up_of_id", sa.String(36), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_by", sa.String(50), nullable=True),
        sa.Column("completed_by", sa.String(100), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_treatment_plan_id", "appointments", ["treatment_plan_id"])
    op.create_index("ix_appointments_provider_window", "appointments", ["provider_id", "start_at", "end_at"])
    op.create_index(
        "uq_appointments_provider_start_occupying",
        "appointments",
        ["provider_id", "start_at"],
        unique=True,
        postgresql_where=sa.text(OCCUPYING_STATUS_SQL),
        sqlite_where=sa.text(OCCUPYING_STATUS_SQL),
    )

    # =========================================================================
    # Completion records
    # =========================================================================
    op.create_table(
        "clinical_notes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("appointment_id", sa.String(36), nullable=False),
        sa.Column("patient_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=False),
        _status("kind"),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_clinical_notes_appointment_id", "clinical_notes", ["appointment_id"])
    op.create_index("ix_clinical_notes_patient_id", "clinical_notes", ["patient_id"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("appointment_id", sa.String(36), nullable=False),
        sa.Column("patient_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        _status("status"),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_invoices_appointment_id", "invoices", ["appointment_id"])
    op.create_index("ix_invoices_patient_id", "invoices", ["patient_id"])

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("invoice_id", sa.String(36), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("tooth_ref", sa.String(20), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=False),
    )
    op.create_index("ix_invoice_items_invoice_id", "invoice_items", ["invoice_id"])

    op.create_table(
        "payment_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("appointment_id", sa.String(36), nullable=False),
        sa.Column("patient_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        _status("status"),
        sa.Column("recipient_contact", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("sent_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payment_requests_appointment_id", "payment_requests", ["appointment_id"])
    op.create_index("ix_payment_requests_patient_id", "payment_requests", ["patient_id"])

    op.create_table(
        "prescriptions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("patient_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("appointment_id", sa.String(36), nullable=True),
        sa.Column("medication", sa.String(200), nullable=False),
        sa.Column("dosage", sa.String(100), nullable=False, server_default=""),
        sa.Column("frequency", sa.String(100), nullable=False, server_default=""),
        sa.Column("duration_text", sa.String(100), nullable=False, server_default=""),
        sa.Column("instructions", sa.Text(), nullable=False, server_default=""),
        _status("status"),
        sa.Column("prescribed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_prescriptions_patient_id", "prescriptions", ["patient_id"])
    op.create_index("ix_prescriptions_appointment_id", "prescriptions", ["appointment_id"])

    op.create_table(
        "treatment_plans",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("patient_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("diagnosis", sa.Text(), nullable=False, server_default=""),
        _status("priority"),
        sa.Column("estimated_cost_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _status("status"),
        sa.Column("start_date", sa.Date(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_treatment_plans_patient_id", "treatment_plans", ["patient_id"])

    op.create_table(
        "patient_contacts",
        sa.Column("patient_id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    """Drop scheduling tables in dependency order."""
    for table in (
        "patient_contacts",
        "treatment_plans",
        "prescriptions",
        "payment_requests",
        "invoice_items",
        "invoices",
        "clinical_notes",
        "appointments",
        "provider_availability_exceptions",
        "provider_emergency_windows",
        "provider_availability_windows",
        "providers",
    ):
        op.drop_table(table)
