# =============================================================================
# control_room/models/__init__.py
# Entity Models, Identifiers and Currency
# =============================================================================

from .entities import (
    EntityModel,
    Deal,
    Contact,
    Debt,
    Job,
    Call,
    DealTask,
    DealEvent,
    DealFile,
    DailyMove,
    DealStage,
    DealPriority,
    DealType,
    PressureLevel,
    PRESSURE_RANK,
    CallType,
    PayFrequency,
    INACTIVE_STAGES,
    ENTITY_MODELS,
    parse_date,
)
from .currency import (
    REFERENCE_CURRENCY,
    USD_TO_EGP_RATE,
    CurrencyTable,
    to_reference,
    to_monthly_amount,
)
from .ids import LocalId, RemoteId, RecordId, needs_reconciliation

__all__ = [
    "EntityModel",
    "Deal",
    "Contact",
    "Debt",
    "Job",
    "Call",
    "DealTask",
    "DealEvent",
    "DealFile",
    "DailyMove",
    "DealStage",
    "DealPriority",
    "DealType",
    "PressureLevel",
    "PRESSURE_RANK",
    "CallType",
    "PayFrequency",
    "INACTIVE_STAGES",
    "ENTITY_MODELS",
    "parse_date",
    "REFERENCE_CURRENCY",
    "USD_TO_EGP_RATE",
    "CurrencyTable",
    "to_reference",
    "to_monthly_amount",
    "LocalId",
    "RemoteId",
    "RecordId",
    "needs_reconciliation",
]
