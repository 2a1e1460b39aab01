from __future__ import annotations

from datetime import date, datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .models import (
    AppointmentStatus,
    Complexity,
    GoalDifficulty,
    GoalFrequency,
    GoalType,
    PaymentMethod,
    PaymentStatus,
    ProcedureType,
)


class ApiModel(BaseModel):
    # JSON in camelCase (contratto della dashboard), attributi Python in snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PartialUpdate(ApiModel):
    # campi NOT NULL sul DB: possono mancare dal payload ma non valere null
    not_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_explicit_nulls(self) -> "PartialUpdate":
        for name in self.not_nullable:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


# =========================
# Auth
# =========================
class RegisterIn(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MeOut(ApiModel):
    id: int
    username: str
    is_active: bool
    is_admin: bool


# =========================
# Dentists / Patients
# =========================
class DentistIn(ApiModel):
    name: str = Field(..., min_length=1)
    clinic: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    notes: str | None = None


class DentistUpdate(PartialUpdate):
    not_nullable = ("name", "is_active")

    name: str | None = Field(None, min_length=1)
    clinic: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    notes: str | None = None
    is_active: bool | None = None


class DentistOut(DentistIn):
    id: int
    is_active: bool
    created_at: datetime


class PatientIn(ApiModel):
    name: str = Field(..., min_length=1)
    dentist_id: int | None = None
    phone: str | None = None
    email: str | None = None


class PatientUpdate(PartialUpdate):
    not_nullable = ("name",)

    name: str | None = Field(None, min_length=1)
    dentist_id: int | None = None
    phone: str | None = None
    email: str | None = None


class PatientOut(PatientIn):
    id: int
    created_at: datetime


# =========================
# Procedures / Invoices
# =========================
class ProcedureIn(ApiModel):
    patient_id: int
    dentist_id: int
    tooth_number: int = Field(..., ge=11, le=85)
    procedure_type: ProcedureType
    complexity: Complexity | None = None
    diagnosis: str | None = None
    prognosis: str | None = None
    canal_measurements: str | None = None
    value: float = Field(..., ge=0)
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_date: date | None = None
    procedure_date: date
    notes: str | None = None


class ProcedureUpdate(PartialUpdate):
    not_nullable = (
        "patient_id",
        "dentist_id",
        "tooth_number",
        "procedure_type",
        "value",
        "payment_method",
        "payment_status",
        "procedure_date",
    )

    patient_id: int | None = None
    dentist_id: int | None = None
    tooth_number: int | None = Field(None, ge=11, le=85)
    procedure_type: ProcedureType | None = None
    complexity: Complexity | None = None
    diagnosis: str | None = None
    prognosis: str | None = None
    canal_measurements: str | None = None
    value: float | None = Field(None, ge=0)
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus | None = None
    payment_date: date | None = None
    procedure_date: date | None = None
    notes: str | None = None


class ProcedureOut(ProcedureIn):
    id: int
    created_at: datetime


class ProcedureDetailOut(ProcedureOut):
    patient_name: str
    dentist_name: str


class InvoiceIn(ApiModel):
    procedure_id: int
    invoice_number: str | None = None
    invoice_value: float = Field(..., ge=0)
    invoice_date: date | None = None
    is_issued: bool = False


class InvoiceUpdate(PartialUpdate):
    not_nullable = ("procedure_id", "invoice_value", "is_issued")

    procedure_id: int | None = None
    invoice_number: str | None = None
    invoice_value: float | None = Field(None, ge=0)
    invoice_date: date | None = None
    is_issued: bool | None = None


class InvoiceOut(InvoiceIn):
    id: int
    created_at: datetime


class InvoiceDetailOut(InvoiceOut):
    procedure_details: ProcedureDetailOut | None = None


# =========================
# Appointments
# =========================
class AppointmentIn(ApiModel):
    patient_id: int | None = None
    dentist_id: int | None = None
    tooth_number: int | None = Field(None, ge=11, le=85)
    procedure_type: ProcedureType | None = None
    complexity: Complexity | None = None
    health_issues: str | None = None
    appointment_date: datetime
    duration: int = Field(60, gt=0)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str | None = None


class AppointmentUpdate(PartialUpdate):
    not_nullable = ("appointment_date", "duration", "status")

    patient_id: int | None = None
    dentist_id: int | None = None
    tooth_number: int | None = Field(None, ge=11, le=85)
    procedure_type: ProcedureType | None = None
    complexity: Complexity | None = None
    health_issues: str | None = None
    appointment_date: datetime | None = None
    duration: int | None = Field(None, gt=0)
    status: AppointmentStatus | None = None
    notes: str | None = None


class AppointmentOut(AppointmentIn):
    id: int
    converted_to_procedure: bool
    procedure_id: int | None = None
    created_at: datetime


class AppointmentDetailOut(AppointmentOut):
    patient_name: str
    dentist_name: str


# =========================
# Financial goals
# =========================
class GoalIn(ApiModel):
    title: str = Field(..., min_length=1)
    description: str | None = None
    goal_type: GoalType
    target_value: float = Field(..., gt=0)
    start_date: date
    end_date: date
    frequency: GoalFrequency = GoalFrequency.MONTHLY
    difficulty: GoalDifficulty = GoalDifficulty.MEDIUM
    dentist_id: int | None = None
    procedure_type: ProcedureType | None = None

    @model_validator(mode="after")
    def _check_window_and_filters(self) -> "GoalIn":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        if self.goal_type == GoalType.SPECIFIC_DENTIST and self.dentist_id is None:
            raise ValueError("SPECIFIC_DENTIST goals require dentistId")
        if self.goal_type == GoalType.SPECIFIC_PROCEDURE and self.procedure_type is None:
            raise ValueError("SPECIFIC_PROCEDURE goals require procedureType")
        return self


class GoalUpdate(PartialUpdate):
    # current_value / is_completed / completed_at non modificabili da qui
    not_nullable = (
        "title",
        "goal_type",
        "target_value",
        "start_date",
        "end_date",
        "frequency",
        "difficulty",
        "is_active",
    )

    title: str | None = Field(None, min_length=1)
    description: str | None = None
    goal_type: GoalType | None = None
    target_value: float | None = Field(None, gt=0)
    start_date: date | None = None
    end_date: date | None = None
    frequency: GoalFrequency | None = None
    difficulty: GoalDifficulty | None = None
    dentist_id: int | None = None
    procedure_type: ProcedureType | None = None
    is_active: bool | None = None


class GoalOut(ApiModel):
    id: int
    title: str
    description: str | None = None
    goal_type: GoalType
    target_value: float
    current_value: float
    start_date: date
    end_date: date
    frequency: GoalFrequency
    difficulty: GoalDifficulty
    dentist_id: int | None = None
    procedure_type: ProcedureType | None = None
    is_active: bool
    is_completed: bool
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class GoalProgressIn(ApiModel):
    value: float = Field(..., ge=0)


class GoalCheckOut(ApiModel):
    updated_goals: int
    completed_goals: int


# =========================
# Achievements
# =========================
class AchievementIn(ApiModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    point_value: int = Field(10, ge=0)
    achievement_type: str = "financial"
    image_url: str | None = None


class AchievementUpdate(PartialUpdate):
    not_nullable = ("title", "description", "point_value", "achievement_type")

    title: str | None = Field(None, min_length=1)
    description: str | None = Field(None, min_length=1)
    point_value: int | None = Field(None, ge=0)
    achievement_type: str | None = None
    image_url: str | None = None


class AchievementOut(AchievementIn):
    id: int
    created_at: datetime


class UserAchievementOut(AchievementOut):
    earned_date: datetime


class AwardOut(ApiModel):
    success: bool


# =========================
# Materials
# =========================
class MaterialIn(ApiModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    category: str = "consumable"
    unit: str = "unit"
    unit_price: float = Field(0, ge=0)
    stock_quantity: float = Field(0, ge=0)
    minimum_stock: float | None = Field(None, ge=0)
    supplier: str | None = None
    notes: str | None = None


class MaterialUpdate(PartialUpdate):
    not_nullable = ("name", "category", "unit", "unit_price", "stock_quantity")

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    category: str | None = None
    unit: str | None = None
    unit_price: float | None = Field(None, ge=0)
    stock_quantity: float | None = Field(None, ge=0)
    minimum_stock: float | None = Field(None, ge=0)
    supplier: str | None = None
    notes: str | None = None


class MaterialOut(MaterialIn):
    id: int
    created_at: datetime
    updated_at: datetime


class StockUpdateIn(ApiModel):
    quantity: float = Field(..., ge=0)


class ProcedureMaterialIn(ApiModel):
    procedure_type: str = Field(..., min_length=1)
    material_id: int
    quantity_used: float = Field(1, gt=0)
    is_optional: bool = False
    notes: str | None = None


class ProcedureMaterialUpdate(PartialUpdate):
    not_nullable = ("procedure_type", "material_id", "quantity_used", "is_optional")

    procedure_type: str | None = Field(None, min_length=1)
    material_id: int | None = None
    quantity_used: float | None = Field(None, gt=0)
    is_optional: bool | None = None
    notes: str | None = None


class ProcedureMaterialOut(ProcedureMaterialIn):
    id: int


class ProcedureMaterialDetailOut(ProcedureMaterialOut):
    material: MaterialOut


class ProcedureCostOut(ApiModel):
    procedure_type: str
    total_cost: float
    materials: list[ProcedureMaterialDetailOut]


# =========================
# Dashboard / report
# =========================
class TypeShareOut(ApiModel):
    type: str
    count: int
    percentage: float


class ComplexityShareOut(ApiModel):
    complexity: str
    count: int
    percentage: float


class DentistPerformanceOut(ApiModel):
    dentist_id: int
    dentist_name: str
    procedure_count: int
    revenue: float


class MonthRevenueOut(ApiModel):
    month: str
    revenue: float


class MonthComparisonOut(ApiModel):
    current_month: float
    previous_month: float
    percentage_change: float


class ProcedureStatsOut(ApiModel):
    total_procedures: int
    monthly_procedures: int
    total_revenue: float
    monthly_revenue: float
    active_dentists: int
    pending_payments: int
    pending_payments_value: float
    procedures_by_type: list[TypeShareOut]
    procedures_by_complexity: list[ComplexityShareOut]
    dentist_performance: list[DentistPerformanceOut]
    revenue_by_month: list[MonthRevenueOut]
    total_treatments: int
    total_retreatments: int
    average_value: float
    monthly_comparison: list[MonthComparisonOut]


class DentistTotalsOut(ApiModel):
    dentist: str
    count: int
    total: float


class DentistReportOut(ApiModel):
    dentist_id: int
    name: str
    total_procedures: int
    treatment_count: int
    retreatment_count: int
    total_value: float
    average_value: float
    procedures: list[ProcedureDetailOut]


class StatusOut(ApiModel):
    status: str
    message: str
    uptime: str
    uptime_raw: float
    started_at: datetime
    current_time: datetime
    database: str
    system_info: dict[str, object]
