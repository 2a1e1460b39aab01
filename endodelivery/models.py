from __future__ import annotations

import enum
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def utcnow() -> datetime:
    """Timestamp UTC naive (SQLite e colonne DateTime senza timezone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ProcedureType(enum.Enum):
    TREATMENT = "TREATMENT"
    RETREATMENT = "RETREATMENT"
    INSTRUMENT_REMOVAL = "INSTRUMENT_REMOVAL"
    OTHER = "OTHER"


class Complexity(enum.Enum):
    STANDARD = "STANDARD"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


class PaymentMethod(enum.Enum):
    PIX = "PIX"
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH = "CASH"
    CHECK = "CHECK"
    PENDING = "PENDING"


class PaymentStatus(enum.Enum):
    PAID = "PAID"
    PENDING = "PENDING"


class AppointmentStatus(enum.Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    RESCHEDULED = "RESCHEDULED"
    NO_SHOW = "NO_SHOW"


class GoalType(enum.Enum):
    REVENUE = "REVENUE"
    PROCEDURE_COUNT = "PROCEDURE_COUNT"
    NEW_PATIENTS = "NEW_PATIENTS"
    SPECIFIC_DENTIST = "SPECIFIC_DENTIST"
    SPECIFIC_PROCEDURE = "SPECIFIC_PROCEDURE"


class GoalFrequency(enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class GoalDifficulty(enum.Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class Dentist(Base):
    """Dentista / clinica inviante (non personale interno)."""
    __tablename__ = "dentists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    clinic: Mapped[str | None] = mapped_column(String(120), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(120), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"Dentist({self.name}, {self.clinic or '-'})"


class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    dentist_id: Mapped[int | None] = mapped_column(ForeignKey("dentists.id"), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(120), nullable=True)
    # usato dalle metriche NEW_PATIENTS
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"Patient({self.name})"


class Procedure(Base):
    __tablename__ = "procedures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False)
    dentist_id: Mapped[int] = mapped_column(ForeignKey("dentists.id"), nullable=False)
    tooth_number: Mapped[int] = mapped_column(Integer, nullable=False)
    procedure_type: Mapped[ProcedureType] = mapped_column(Enum(ProcedureType), nullable=False)
    complexity: Mapped[Complexity | None] = mapped_column(Enum(Complexity), nullable=True)

    diagnosis: Mapped[str | None] = mapped_column(Text, nullable=True)
    prognosis: Mapped[str | None] = mapped_column(Text, nullable=True)
    canal_measurements: Mapped[str | None] = mapped_column(Text, nullable=True)

    value: Mapped[float] = mapped_column(Float, nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(Enum(PaymentMethod), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(Enum(PaymentStatus), nullable=False)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    procedure_date: Mapped[date] = mapped_column(Date, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    procedure_id: Mapped[int] = mapped_column(ForeignKey("procedures.id"), nullable=False)
    invoice_number: Mapped[str | None] = mapped_column(String(60), nullable=True)
    invoice_value: Mapped[float] = mapped_column(Float, nullable=False)
    invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_issued: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[int | None] = mapped_column(ForeignKey("patients.id"), nullable=True)
    dentist_id: Mapped[int | None] = mapped_column(ForeignKey("dentists.id"), nullable=True)
    tooth_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    procedure_type: Mapped[ProcedureType | None] = mapped_column(Enum(ProcedureType), nullable=True)
    complexity: Mapped[Complexity | None] = mapped_column(Enum(Complexity), nullable=True)
    health_issues: Mapped[str | None] = mapped_column(Text, nullable=True)

    appointment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=60, nullable=False)  # minuti
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus), default=AppointmentStatus.SCHEDULED, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    converted_to_procedure: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    procedure_id: Mapped[int | None] = mapped_column(ForeignKey("procedures.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class FinancialGoal(Base):
    __tablename__ = "financial_goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    goal_type: Mapped[GoalType] = mapped_column(Enum(GoalType), nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    current_value: Mapped[float] = mapped_column(Float, default=0, nullable=False)

    # finestra inclusiva [start_date, end_date]
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # informativi, nessuno scheduler li usa
    frequency: Mapped[GoalFrequency] = mapped_column(
        Enum(GoalFrequency), default=GoalFrequency.MONTHLY, nullable=False
    )
    difficulty: Mapped[GoalDifficulty] = mapped_column(
        Enum(GoalDifficulty), default=GoalDifficulty.MEDIUM, nullable=False
    )

    dentist_id: Mapped[int | None] = mapped_column(ForeignKey("dentists.id"), nullable=True)
    procedure_type: Mapped[ProcedureType | None] = mapped_column(Enum(ProcedureType), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"FinancialGoal({self.title}, {self.goal_type.value}, {self.current_value}/{self.target_value})"


class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    point_value: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    achievement_type: Mapped[str] = mapped_column(String(40), default="financial", nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    awards: Mapped[list["UserAchievement"]] = relationship(
        back_populates="achievement", cascade="all, delete-orphan"
    )


class UserAchievement(Base):
    """Conquista ottenuta (utente unico implicito): append-only, al massimo una per achievement."""
    __tablename__ = "user_achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    achievement_id: Mapped[int] = mapped_column(ForeignKey("achievements.id"), nullable=False, unique=True)
    earned_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    achievement: Mapped["Achievement"] = relationship(back_populates="awards")


class Material(Base):
    __tablename__ = "materials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(40), default="consumable", nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="unit", nullable=False)

    unit_price: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    stock_quantity: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    minimum_stock: Mapped[float | None] = mapped_column(Float, nullable=True)

    supplier: Mapped[str | None] = mapped_column(String(120), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    procedure_links: Mapped[list["ProcedureMaterial"]] = relationship(
        back_populates="material", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"Material({self.name}, stock={self.stock_quantity})"


class ProcedureMaterial(Base):
    """Materiale usato per tipo di procedura (es. "TREATMENT" o varianti libere)."""
    __tablename__ = "procedure_materials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    procedure_type: Mapped[str] = mapped_column(String(60), nullable=False, index=True)
    material_id: Mapped[int] = mapped_column(ForeignKey("materials.id"), nullable=False)
    quantity_used: Mapped[float] = mapped_column(Float, default=1, nullable=False)
    is_optional: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    material: Mapped["Material"] = relationship(back_populates="procedure_links")
