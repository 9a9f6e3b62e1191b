# =============================================================================
# tests/unit/test_models.py
# Unit Tests for Entity Models, Ids and Currency
# =============================================================================

from datetime import date

import pytest

from control_room.errors import CurrencyConversionError, DataValidationError
from control_room.models import (
    CurrencyTable,
    DailyMove,
    Deal,
    DealEvent,
    DealPriority,
    DealStage,
    Debt,
    Job,
    LocalId,
    PayFrequency,
    PressureLevel,
    RemoteId,
    needs_reconciliation,
    to_monthly_amount,
    to_reference,
)


class TestCurrency:
    """Fixed-rate conversion to EGP"""

    def test_usd_is_converted(self):
        assert to_reference(100, "USD") == 5000.0

    def test_egp_is_identity(self):
        assert to_reference(100, "EGP") == 100.0

    def test_missing_currency_means_reference(self):
        assert to_reference(100, None) == 100.0

    def test_unknown_currency_raises(self):
        with pytest.raises(CurrencyConversionError) as exc_info:
            to_reference(10, "EUR")

        assert exc_info.value.details["currency"] == "EUR"

    def test_custom_rate_table(self):
        table = CurrencyTable({"EGP": 1.0, "USD": 48.0})

        assert table.to_reference(2, "usd") == 96.0
        assert "USD" in table
        assert "EUR" not in table

    @pytest.mark.parametrize("frequency,expected", [
        ("weekly", 1200 * 52 / 12),
        ("biweekly", 1200 * 26 / 12),
        ("monthly", 1200.0),
        ("yearly", 100.0),
    ])
    def test_monthly_amount(self, frequency, expected):
        assert to_monthly_amount(1200, frequency) == pytest.approx(expected)

    def test_unknown_frequency_raises(self):
        with pytest.raises(CurrencyConversionError):
            to_monthly_amount(100, "daily")


class TestDealModel:
    """Deal parsing and validation"""

    def test_from_stored_row(self):
        deal = Deal.from_dict({
            "id": "d1",
            "name": "توريد",
            "stage": "مفاوضات",
            "priority": "عالي",
            "next_action_date": "2025-03-12",
            "contacts": [{"name": "سامي", "phone": "0100"}],
            "unknown_column": "ignored",
        })

        assert deal.stage == DealStage.NEGOTIATING
        assert deal.priority == DealPriority.HIGH
        assert deal.next_action_date == date(2025, 3, 12)
        assert deal.contacts[0].name == "سامي"

    def test_to_dict_uses_stored_values(self):
        row = Deal(name="x", stage=DealStage.CLOSED, next_action_date=date(2025, 1, 2)).to_dict()

        assert row["stage"] == "مقفول"
        assert row["next_action_date"] == "2025-01-02"

    def test_invalid_stage_raises(self):
        with pytest.raises(DataValidationError):
            Deal.from_dict({"name": "x", "stage": "done"})

    def test_negative_value_raises(self):
        with pytest.raises(DataValidationError):
            Deal(name="x", expected_value=-1)

    def test_unsupported_currency_raises(self):
        with pytest.raises(DataValidationError):
            Deal(name="x", currency="EUR")

    def test_missing_required_field_raises(self):
        with pytest.raises(DataValidationError):
            Deal.from_dict({"stage": "جديد"})

    @pytest.mark.parametrize("stage", [DealStage.CLOSED, DealStage.CANCELLED, DealStage.DEFERRED])
    def test_inactive_stages(self, stage):
        assert not Deal(name="x", stage=stage).is_active

    def test_blank_next_action(self):
        assert not Deal(name="x", next_action="   ").has_next_action


class TestPartialUpdates:
    """normalize_changes"""

    def test_serializes_enums_and_dates(self):
        changes = Deal.normalize_changes({
            "stage": DealStage.NEGOTIATING,
            "next_action_date": date(2025, 4, 1),
        })

        assert changes == {"stage": "مفاوضات", "next_action_date": "2025-04-01"}

    def test_rejects_read_only_field(self):
        with pytest.raises(DataValidationError):
            Deal.normalize_changes({"id": "other"})

    def test_rejects_unknown_field(self):
        with pytest.raises(DataValidationError):
            Deal.normalize_changes({"color": "red"})

    def test_paying_a_debt_zeroes_remaining(self):
        assert Debt.normalize_changes({"is_paid": True}) == {"is_paid": True, "remaining_amount": 0.0}


class TestOtherEntities:
    """Defaults of the remaining entity types"""

    def test_debt_remaining_defaults_to_amount(self):
        debt = Debt(creditor_name="Bank", amount=1000)

        assert debt.remaining_amount == 1000.0
        assert debt.pressure_level == PressureLevel.MEDIUM

    def test_paid_debt_has_nothing_remaining(self):
        assert Debt(creditor_name="Bank", amount=1000, remaining_amount=400, is_paid=True).remaining_amount == 0.0

    def test_job_defaults(self):
        job = Job.from_dict({"name": "Freelance", "pay_frequency": "weekly"})

        assert job.is_active
        assert job.pay_frequency == PayFrequency.WEEKLY

    def test_event_defaults(self):
        event = DealEvent(deal_id="d1", title="اتصال")

        assert event.event_type == "ملاحظة"
        assert event.event_date

    def test_daily_move_defaults(self):
        move = DailyMove.from_dict({"title": "كلم العميل", "priority": None})

        assert move.priority == 1
        assert move.move_date == date.today()
        assert move.is_completed is False


class TestRecordIds:
    """Provisional and canonical ids"""

    def test_local_ids_are_unique(self):
        assert LocalId.new() != LocalId.new()

    def test_reconciliation_needed_only_when_ids_differ(self):
        assert not needs_reconciliation(LocalId("a"), RemoteId("a"))
        assert needs_reconciliation(LocalId("a"), RemoteId("b"))
