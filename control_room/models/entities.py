# =============================================================================
# control_room/models/entities.py
# Entity Models for Control Room
# Deals, debts, jobs, calls, deal sub-entities and daily moves
# =============================================================================
"""
Dataclass models for every entity the dashboard stores.

Enum values are the Arabic labels stored in the database, so records read
from Supabase or from the local cache round-trip unchanged.

Every model supports:
- ``from_dict(data)``: validate and build from a stored row (unknown keys ignored)
- ``to_dict()``: JSON-ready row (enums as values, dates as ISO strings)
- ``normalize_changes(changes)``: validate a partial update before it is sent
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type

from control_room.errors import DataValidationError
from .currency import SUPPORTED_CURRENCIES


# =============================================================================
# ENUMERATIONS
# =============================================================================

class DealStage(Enum):
    """Deal lifecycle, in pipeline order."""
    NEW = "جديد"
    TALKING = "بتتكلم"
    NEGOTIATING = "مفاوضات"
    AWAITING_REPLY = "مستني رد"
    AWAITING_SIGNATURE = "مستني توقيع"
    DEFERRED = "مؤجل"
    CLOSED = "مقفول"
    CANCELLED = "ملغي"


# Stages never ranked by the priority engine
INACTIVE_STAGES = frozenset({DealStage.CLOSED, DealStage.CANCELLED, DealStage.DEFERRED})


class DealPriority(Enum):
    HIGH = "عالي"
    MEDIUM = "متوسط"
    LOW = "منخفض"


class PressureLevel(Enum):
    HIGH = "عالي"
    MEDIUM = "متوسط"
    LIGHT = "خفيف"


PRESSURE_RANK = {PressureLevel.HIGH: 0, PressureLevel.MEDIUM: 1, PressureLevel.LIGHT: 2}


class CallType(Enum):
    OUTGOING = "صادر"
    INCOMING = "وارد"
    FOLLOW_UP = "متابعة"


class PayFrequency(Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class DealType(Enum):
    BROKERAGE = "وساطة"
    SUPPLY = "توريد"
    GOVERNMENT = "حكومي"
    RECRUITMENT = "توظيف"
    CONSULTING = "استشارات"
    SALES = "مبيعات"
    OTHER = "أخرى"


DEFAULT_EVENT_TYPE = "ملاحظة"


# =============================================================================
# HELPERS
# =============================================================================

def parse_date(value: Any) -> Optional[date]:
    """Accept a date, datetime or ISO string (date part only); None/'' -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise DataValidationError(
            f"Invalid date: {value!r}",
            expected="YYYY-MM-DD",
            actual=str(value),
        )


def _to_enum(enum_cls: Type[Enum], value: Any, field_name: str) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise DataValidationError(
            f"Invalid {field_name}: {value!r}",
            field=field_name,
            expected=", ".join(m.value for m in enum_cls),
            actual=str(value),
        )


def _now_iso() -> str:
    return datetime.now().isoformat()


# =============================================================================
# BASE MODEL
# =============================================================================

class EntityModel:
    """Shared (de)serialization for the entity dataclasses."""

    TABLE: ClassVar[str] = ""
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ()
    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {}
    # Columns the remote store fills in; never sent in a partial update
    READ_ONLY_FIELDS: ClassVar[Tuple[str, ...]] = ("id", "created_at")

    @classmethod
    def _coerce(cls, key: str, value: Any) -> Any:
        if key in cls.DATE_FIELDS:
            return parse_date(value)
        if key in cls.ENUM_FIELDS and value is not None:
            return _to_enum(cls.ENUM_FIELDS[key], value, key)
        return value

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        known = set(cls.field_names())
        kwargs = {
            key: cls._coerce(key, value)
            for key, value in data.items()
            if key in known
        }
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise DataValidationError(
                f"Incomplete {cls.__name__} record: {e}",
                details={"table": cls.TABLE},
            )

    @classmethod
    def normalize_changes(cls, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a partial update and return it in stored (JSON) form."""
        known = set(cls.field_names())
        normalized: Dict[str, Any] = {}
        for key, value in changes.items():
            if key not in known or key in cls.READ_ONLY_FIELDS:
                raise DataValidationError(
                    f"Field '{key}' cannot be updated on {cls.TABLE}",
                    field=key,
                )
            normalized[key] = _serialize(cls._coerce(key, value))
        # Run the model's own invariants on the changed fields
        cls._validate_partial(normalized)
        return normalized

    @classmethod
    def _validate_partial(cls, changes: Dict[str, Any]) -> None:
        pass

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _serialize(getattr(self, f.name)) for f in fields(self)}


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def _check_currency(currency: str) -> None:
    if currency not in SUPPORTED_CURRENCIES:
        raise DataValidationError(
            f"Unsupported currency: {currency!r}",
            field="currency",
            expected=", ".join(SUPPORTED_CURRENCIES),
            actual=str(currency),
        )


def _check_non_negative(name: str, value: Any) -> None:
    if value is not None and float(value) < 0:
        raise DataValidationError(
            f"{name} must be >= 0",
            field=name,
            actual=str(value),
        )


# =============================================================================
# DEALS
# =============================================================================

@dataclass
class Contact:
    name: str
    phone: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Contact":
        return cls(name=data.get("name", ""), phone=data.get("phone"), role=data.get("role"))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "phone": self.phone, "role": self.role}


@dataclass
class Deal(EntityModel):
    """A tracked business opportunity ("مصلحة")."""
    name: str
    id: Optional[str] = None
    type: str = DealType.OTHER.value
    description: Optional[str] = None
    stage: DealStage = DealStage.NEW
    priority: DealPriority = DealPriority.MEDIUM
    expected_value: float = 0.0
    realized_value: float = 0.0
    currency: str = "EGP"
    next_action: Optional[str] = None
    next_action_date: Optional[date] = None
    contacts: List[Contact] = field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    TABLE: ClassVar[str] = "deals"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("next_action_date",)
    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {
        "stage": DealStage,
        "priority": DealPriority,
    }

    def __post_init__(self):
        self.expected_value = float(self.expected_value or 0)
        self.realized_value = float(self.realized_value or 0)
        self.currency = self.currency or "EGP"
        self.contacts = [
            c if isinstance(c, Contact) else Contact.from_dict(c)
            for c in (self.contacts or [])
        ]
        _check_non_negative("expected_value", self.expected_value)
        _check_currency(self.currency)

    @classmethod
    def _coerce(cls, key: str, value: Any) -> Any:
        if key == "contacts":
            return [c if isinstance(c, Contact) else Contact.from_dict(c) for c in (value or [])]
        return super()._coerce(key, value)

    @classmethod
    def _validate_partial(cls, changes: Dict[str, Any]) -> None:
        if "expected_value" in changes:
            _check_non_negative("expected_value", changes["expected_value"])
        if "currency" in changes:
            _check_currency(changes["currency"])

    @property
    def is_active(self) -> bool:
        return self.stage not in INACTIVE_STAGES

    @property
    def has_next_action(self) -> bool:
        return bool(self.next_action and self.next_action.strip())


# =============================================================================
# MONEY
# =============================================================================

@dataclass
class Debt(EntityModel):
    """A liability; ``remaining_amount`` defaults to ``amount``."""
    creditor_name: str
    amount: float
    id: Optional[str] = None
    currency: str = "EGP"
    monthly_payment: float = 0.0
    remaining_amount: Optional[float] = None
    due_date: Optional[date] = None
    pressure_level: PressureLevel = PressureLevel.MEDIUM
    is_paid: bool = False
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    TABLE: ClassVar[str] = "debts"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("due_date",)
    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {"pressure_level": PressureLevel}

    def __post_init__(self):
        self.amount = float(self.amount or 0)
        self.monthly_payment = float(self.monthly_payment or 0)
        self.currency = self.currency or "EGP"
        self.is_paid = bool(self.is_paid)
        if self.is_paid:
            self.remaining_amount = 0.0
        elif self.remaining_amount is None:
            self.remaining_amount = self.amount
        else:
            self.remaining_amount = float(self.remaining_amount)
        _check_non_negative("amount", self.amount)
        _check_currency(self.currency)

    @classmethod
    def _validate_partial(cls, changes: Dict[str, Any]) -> None:
        if "amount" in changes:
            _check_non_negative("amount", changes["amount"])
        if "currency" in changes:
            _check_currency(changes["currency"])
        if changes.get("is_paid"):
            changes["remaining_amount"] = 0.0


@dataclass
class Job(EntityModel):
    """A recurring source of income."""
    name: str
    id: Optional[str] = None
    company: Optional[str] = None
    description: Optional[str] = None
    salary_amount: float = 0.0
    currency: str = "EGP"
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    hours_per_day: Optional[float] = None
    next_pay_date: Optional[date] = None
    is_active: bool = True
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    TABLE: ClassVar[str] = "jobs"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("next_pay_date",)
    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {"pay_frequency": PayFrequency}

    def __post_init__(self):
        self.salary_amount = float(self.salary_amount or 0)
        self.currency = self.currency or "EGP"
        self.is_active = True if self.is_active is None else bool(self.is_active)
        _check_non_negative("salary_amount", self.salary_amount)
        _check_currency(self.currency)


# =============================================================================
# DEAL ACTIVITY
# =============================================================================

@dataclass
class Call(EntityModel):
    contact_name: str
    id: Optional[str] = None
    deal_id: Optional[str] = None
    phone_number: Optional[str] = None
    call_type: CallType = CallType.OUTGOING
    result: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    call_date: str = field(default_factory=_now_iso)
    created_at: Optional[str] = None

    TABLE: ClassVar[str] = "calls"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("follow_up_date",)
    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {"call_type": CallType}


@dataclass
class DealTask(EntityModel):
    deal_id: str
    title: str
    id: Optional[str] = None
    is_completed: bool = False
    priority: Optional[int] = None
    due_date: Optional[date] = None
    created_at: Optional[str] = None

    TABLE: ClassVar[str] = "deal_tasks"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("due_date",)

    def __post_init__(self):
        self.is_completed = bool(self.is_completed)


@dataclass
class DealEvent(EntityModel):
    deal_id: str
    title: str
    id: Optional[str] = None
    event_type: str = DEFAULT_EVENT_TYPE
    description: Optional[str] = None
    event_date: str = field(default_factory=_now_iso)
    created_at: Optional[str] = None

    TABLE: ClassVar[str] = "deal_events"


@dataclass
class DealFile(EntityModel):
    deal_id: str
    name: str
    file_url: str
    id: Optional[str] = None
    file_type: Optional[str] = None
    created_at: Optional[str] = None

    TABLE: ClassVar[str] = "deal_files"


@dataclass
class DailyMove(EntityModel):
    """A task bound to a single day, optionally tied to a deal."""
    title: str
    id: Optional[str] = None
    deal_id: Optional[str] = None
    is_completed: bool = False
    priority: int = 1
    move_date: date = field(default_factory=date.today)
    created_at: Optional[str] = None

    TABLE: ClassVar[str] = "daily_moves"
    DATE_FIELDS: ClassVar[Tuple[str, ...]] = ("move_date",)

    def __post_init__(self):
        self.is_completed = bool(self.is_completed)
        self.priority = 1 if self.priority is None else int(self.priority)
        if self.move_date is None:
            self.move_date = date.today()


ENTITY_MODELS: Dict[str, Type[EntityModel]] = {
    model.TABLE: model
    for model in (Deal, Debt, Job, Call, DealTask, DealEvent, DealFile, DailyMove)
}
