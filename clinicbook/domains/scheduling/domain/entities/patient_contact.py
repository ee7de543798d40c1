"""
Patient Contact

Read-only contact data supplied by the profile store.
"""

from dataclasses import dataclass

from clinicbook.core.domain import Email, ValueObject


@dataclass(frozen=True)
class PatientContact(ValueObject):
    """How to reach a patient."""

    patient_id: str
    name: str = ""
    email: str | None = None
    phone: str | None = None

    @property
    def email_address(self) -> Email | None:
        """Get the validated email, or None if missing or malformed."""
        if not self.email:
            return None
        try:
            return Email(self.email)
        except ValueError:
            return None

    @property
    def greeting_name(self) -> str:
        return self.name.split()[0] if self.name.strip() else "patient"
