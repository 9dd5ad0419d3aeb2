import uuid
from datetime import datetime, date as date_type, time
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Time,
    Boolean,
    Float,
    JSON,
    BigInteger,
    Text,
    Index,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base


def uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


def uuid_ref(nullable: bool = True, index: bool = False) -> Mapped[uuid.UUID]:
    # References are plain ids: targets may be deleted independently and reads degrade to placeholders
    return mapped_column(Uuid(as_uuid=True), nullable=nullable, index=index)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = uuid_pk()
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # admin|manager|staff|contractor
    department: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    position: Mapped[Optional[str]] = mapped_column(String(100))
    mobile_number: Mapped[Optional[str]] = mapped_column(String(50))
    nationality: Mapped[Optional[str]] = mapped_column(String(100))
    joining_date: Mapped[Optional[date_type]] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = uuid_pk()
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(500))
    client_name: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(50), default="Planning", index=True)  # Planning|Active|On Hold|Completed
    start_date: Mapped[Optional[date_type]] = mapped_column(Date)
    end_date: Mapped[Optional[date_type]] = mapped_column(Date)
    created_by: Mapped[Optional[uuid.UUID]] = uuid_ref()
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class FileObject(Base):
    __tablename__ = "file_objects"

    id: Mapped[uuid.UUID] = uuid_pk()
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    container: Mapped[str] = mapped_column(String(255), nullable=False)
    key: Mapped[str] = mapped_column(String(1024), nullable=False, index=True)
    original_name: Mapped[Optional[str]] = mapped_column(String(255))
    size_bytes: Mapped[Optional[int]] = mapped_column(BigInteger)
    content_type: Mapped[Optional[str]] = mapped_column(String(255))
    checksum_sha256: Mapped[Optional[str]] = mapped_column(String(128))
    created_by: Mapped[Optional[uuid.UUID]] = uuid_ref()
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Contractor(Base):
    __tablename__ = "contractors"

    id: Mapped[uuid.UUID] = uuid_pk()
    company_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    business_license: Mapped[str] = mapped_column(String(100), nullable=False)
    nationality: Mapped[str] = mapped_column(String(100), nullable=False)
    categories: Mapped[list] = mapped_column(JSON, default=list)
    contact_person: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    previous_projects: Mapped[str] = mapped_column(Text, default="")
    rating: Mapped[Optional[str]] = mapped_column(String(50), index=True)  # free-form, e.g. "4/5" or "A"
    documents: Mapped[list] = mapped_column(JSON, default=list)  # FileObject ids as strings
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_by: Mapped[uuid.UUID] = uuid_ref(nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class FiberTeam(Base):
    __tablename__ = "fiber_teams"

    id: Mapped[uuid.UUID] = uuid_pk()
    team_name: Mapped[str] = mapped_column(String(255), nullable=False)
    team_lead: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    members: Mapped[list] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Available", index=True)  # Available|Assigned|On Leave|Inactive
    # {project_id, location, task_description, assignment_date, expected_completion_date}
    current_assignment: Mapped[Optional[dict]] = mapped_column(JSON)
    created_by: Mapped[uuid.UUID] = uuid_ref(nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[uuid.UUID] = uuid_pk()
    requested_by: Mapped[uuid.UUID] = uuid_ref(nullable=False, index=True)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    request_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)  # Annual Leave|Sick Leave|Shift Change|Emergency Leave
    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    shift_swap_with: Mapped[Optional[uuid.UUID]] = uuid_ref()
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending", index=True)  # Pending|Approved|Rejected
    approved_by: Mapped[Optional[uuid.UUID]] = uuid_ref()
    project_id: Mapped[Optional[uuid.UUID]] = uuid_ref(index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class TrainingRequest(Base):
    __tablename__ = "training_requests"

    id: Mapped[uuid.UUID] = uuid_pk()
    training_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)  # General|Fiber|Engineering|Telecom|Civil Engineering
    requested_by: Mapped[uuid.UUID] = uuid_ref(nullable=False, index=True)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    training_title: Mapped[str] = mapped_column(String(255), nullable=False)
    training_provider: Mapped[Optional[str]] = mapped_column(String(255))
    justification: Mapped[str] = mapped_column(Text, nullable=False)
    preferred_dates: Mapped[Optional[str]] = mapped_column(String(255))
    estimated_cost: Mapped[Optional[float]] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending", index=True)  # Pending|Approved|Rejected|Completed
    approved_by: Mapped[Optional[uuid.UUID]] = uuid_ref()
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class ProcurementLog(Base):
    __tablename__ = "procurement_logs"

    id: Mapped[uuid.UUID] = uuid_pk()
    log_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)  # Purchase Order (PO)|Invoice|Delivery Note|Material Request
    document_id: Mapped[str] = mapped_column(String(100), nullable=False)  # PO number, invoice number, ...
    supplier: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    amount: Mapped[Optional[float]] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Pending", index=True)  # Pending|Approved|Ordered|Delivered|Paid|Cancelled
    related_project_id: Mapped[Optional[uuid.UUID]] = uuid_ref(index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = uuid_ref(nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class HRDocument(Base):
    __tablename__ = "hr_documents"

    id: Mapped[uuid.UUID] = uuid_pk()
    user_id: Mapped[uuid.UUID] = uuid_ref(nullable=False, index=True)
    document_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)  # Passport|Visa|Work Permit|Medical Certificate|...
    document_number: Mapped[str] = mapped_column(String(100), nullable=False)
    # Stored as entered (ISO date string); status is derived from it at read time
    expiry_date: Mapped[Optional[str]] = mapped_column(String(32), index=True)
    insurance_provider: Mapped[Optional[str]] = mapped_column(String(255))
    file_id: Mapped[Optional[uuid.UUID]] = uuid_ref()
    file_name: Mapped[Optional[str]] = mapped_column(String(255))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = uuid_ref(nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class ProjectDocument(Base):
    __tablename__ = "project_documents"

    id: Mapped[uuid.UUID] = uuid_pk()
    project_id: Mapped[uuid.UUID] = uuid_ref(nullable=False, index=True)
    document_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)  # Engineer Sketch|Report|Drawing|Specification
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    file_id: Mapped[uuid.UUID] = uuid_ref(nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_by: Mapped[uuid.UUID] = uuid_ref(nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Shift(Base):
    """Shift scheduling for field staff"""
    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = uuid_pk()
    user_id: Mapped[uuid.UUID] = uuid_ref(nullable=False, index=True)
    site_id: Mapped[Optional[str]] = mapped_column(String(100))
    project_id: Mapped[Optional[uuid.UUID]] = uuid_ref(index=True)
    shift_type: Mapped[str] = mapped_column(String(50), nullable=False)  # Morning|Afternoon|Night|Rotational
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time(timezone=False), nullable=False)
    end_time: Mapped[time] = mapped_column(Time(timezone=False), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Scheduled", index=True)  # Scheduled|In Progress|Completed|Cancelled
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = uuid_ref(nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class AuditLog(Base):
    """Append-only audit log for lifecycle actions"""
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = uuid_pk()
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)  # CREATE|UPDATE|APPROVE|REJECT|COMPLETE|ASSIGN|CLEAR|STATUS|DELETE
    actor_id: Mapped[Optional[uuid.UUID]] = uuid_ref(index=True)
    changes_json: Mapped[Optional[dict]] = mapped_column(JSON)
    timestamp_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)
    integrity_hash: Mapped[Optional[str]] = mapped_column(String(64))

    __table_args__ = (
        Index('idx_audit_entity', 'entity_type', 'entity_id'),
    )
