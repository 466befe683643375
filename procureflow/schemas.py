"""Input and output shapes for the procurement core (pydantic v2)."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, ClassVar, List, Optional, Type, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PositiveInt,
    ValidationError as PydanticValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .models import AdminAction, ManagerAction, RequestStatus, UserRole

# Decimal inside Python, JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# Timestamps are stored as naive UTC; offset-aware input is converted first.
UtcDateTime = Annotated[datetime, AfterValidator(_to_naive_utc)]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

M = TypeVar("M", bound=BaseModel)


def parse_input(model_cls: Type[M], data) -> M:
    """Validate `data` into `model_cls`, raising the core ValidationError on failure."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data if data is not None else {})
    except PydanticValidationError as exc:
        errors = json.loads(exc.json(include_url=False))
        summary = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in errors
        )
        raise ValidationError(f"Invalid {model_cls.__name__}: {summary}", errors=errors) from exc


class PartialInput(BaseModel):
    """
    Base for payloads where only supplied fields are applied.

    A field absent from the payload leaves the stored value untouched; a field
    supplied as null clears it. Fields listed in NOT_NULLABLE may be omitted
    but never nulled.
    """

    NOT_NULLABLE: ClassVar[tuple[str, ...]] = ()

    def supplied(self, name: str) -> bool:
        return name in self.model_fields_set

    def changes(self, *exclude: str) -> dict:
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in exclude
        }

    @model_validator(mode="after")
    def _reject_nulls(self):
        for name in self.NOT_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


# ---------------------------------------------------------------------
# Request lifecycle inputs
# ---------------------------------------------------------------------
class RequestLineInput(BaseModel):
    item_id: int
    quantity: PositiveInt
    notes: Optional[str] = None


class CreateRequestInput(BaseModel):
    staff_id: int
    title: str = Field(min_length=1)
    justification: Optional[str] = None
    items: List[RequestLineInput] = Field(min_length=1)


class ManagerActionInput(BaseModel):
    request_id: int
    manager_id: int
    action: ManagerAction
    notes: Optional[str] = None


class AdminProcessInput(PartialInput):
    """
    Admin processing payload.

    notes, actual_cost, purchase_date and received_date are applied only when
    supplied (see PartialInput).
    """

    request_id: int
    admin_id: int
    action: AdminAction
    notes: Optional[str] = None
    actual_cost: Optional[Decimal] = Field(default=None, gt=0)
    purchase_date: Optional[UtcDateTime] = None
    received_date: Optional[UtcDateTime] = None


class RequestFilter(BaseModel):
    status: Optional[RequestStatus] = None
    staff_id: Optional[int] = None
    manager_id: Optional[int] = None
    date_from: Optional[UtcDateTime] = None
    date_to: Optional[UtcDateTime] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


# ---------------------------------------------------------------------
# Catalog / user administration inputs
# ---------------------------------------------------------------------
class CreateUserInput(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    name: str = Field(min_length=1)
    role: UserRole


class UpdateUserInput(PartialInput):
    NOT_NULLABLE: ClassVar[tuple[str, ...]] = ("email", "name", "role", "is_active")

    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    name: Optional[str] = Field(default=None, min_length=1)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class CreateCategoryInput(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class UpdateCategoryInput(PartialInput):
    NOT_NULLABLE: ClassVar[tuple[str, ...]] = ("name", "is_active")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CreateItemInput(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category_id: int
    unit: str = Field(min_length=1)
    estimated_price: Optional[Decimal] = Field(default=None, ge=0)


class UpdateItemInput(PartialInput):
    NOT_NULLABLE: ClassVar[tuple[str, ...]] = ("name", "category_id", "unit", "is_active")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = None
    unit: Optional[str] = Field(default=None, min_length=1)
    estimated_price: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


# ---------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    category_id: int
    unit: str
    estimated_price: Optional[Money] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ItemWithCategory(ItemOut):
    category: CategoryOut


class RequestItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    request_id: int
    item_id: int
    quantity: int
    estimated_unit_cost: Optional[Money] = None
    actual_unit_cost: Optional[Money] = None
    notes: Optional[str] = None
    created_at: datetime


class RequestItemWithDetails(RequestItemOut):
    item: ItemWithCategory


class RequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    staff_id: int
    title: str
    justification: Optional[str] = None
    status: RequestStatus
    manager_id: Optional[int] = None
    manager_notes: Optional[str] = None
    admin_id: Optional[int] = None
    admin_notes: Optional[str] = None
    total_estimated_cost: Optional[Money] = None
    actual_cost: Optional[Money] = None
    purchase_date: Optional[datetime] = None
    received_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class RequestWithDetails(RequestOut):
    staff: UserOut
    manager: Optional[UserOut] = None
    admin: Optional[UserOut] = None
    items: List[RequestItemWithDetails] = []


class _ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CategorySummary(_ReportModel):
    category_name: str
    request_count: int
    total_amount: Money


class MonthlyTrend(_ReportModel):
    month: str
    request_count: int
    total_amount: Money


class ProcurementReport(_ReportModel):
    total_requests: int = 0
    pending_requests: int = 0
    approved_requests: int = 0
    rejected_requests: int = 0
    completed_requests: int = 0
    total_spent: Money = Decimal("0.00")
    average_processing_time: float = 0.0
    top_categories: List[CategorySummary] = []
    monthly_trends: List[MonthlyTrend] = []
