from __future__ import annotations

from enum import Enum

from ..extensions import db
from ..services.identifier_service import generate_public_id
from ..time_utils import to_utc_z


class SourceFormat(str, Enum):
    """Which identifying columns the imported row populated."""

    COMPLETE_EMPLOYEE = "complete_employee"
    BASIC_NAME = "basic_name"
    EMPLOYEE_ID_ONLY = "employee_id_only"
    PERSON_ID_ONLY = "person_id_only"


VALID_SOURCE_FORMATS = {f.value for f in SourceFormat}


class Person(db.Model):
    """
    A participant imported for an event.

    Persons are immutable after import and never deleted while orders
    reference them. Which of first/last name, employee id and person id are
    populated depends on source_format.
    """
    __tablename__ = "persons"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(64), nullable=False, unique=True, default=generate_public_id)

    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    employee_id = db.Column(db.String(64), nullable=True, index=True)
    person_id = db.Column(db.String(64), nullable=True, index=True)
    source_format = db.Column(db.String(32), nullable=False, default=SourceFormat.BASIC_NAME.value)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        if name:
            return name
        if self.employee_id:
            return f"Employee {self.employee_id}"
        if self.person_id:
            return f"Person {self.person_id}"
        return self.public_id

    def to_dict(self) -> dict:
        return {
            "public_id": self.public_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "employee_id": self.employee_id,
            "person_id": self.person_id,
            "source_format": self.source_format,
            "display_name": self.display_name,
            "created_at": to_utc_z(self.created_at),
        }

    def to_ref(self) -> dict:
        """Compact reference embedded in gift/order payloads."""
        return {
            "public_id": self.public_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.display_name,
        }
