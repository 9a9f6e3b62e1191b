# =============================================================================
# tests/unit/test_priority_engine.py
# Unit Tests for Readiness, Scoring Rules and Ranking
# =============================================================================

from datetime import timedelta

import pytest

from control_room.models import CurrencyTable, Deal, DealPriority, DealStage, Debt, PressureLevel
from control_room.priority import (
    READY_THRESHOLD,
    Difficulty,
    PriorityEngine,
    analyze_execution_difficulty,
    analyze_readiness,
    focus_level,
    prioritize,
)


def make_deal(name="deal", **kwargs):
    return Deal(name=name, id=kwargs.pop("id", name), **kwargs)


def ready_deal(today, name="ready", **kwargs):
    """Negotiating deal with a dated next step: no blockers"""
    defaults = dict(
        stage=DealStage.NEGOTIATING,
        next_action="ابعت العرض",
        next_action_date=today + timedelta(days=10),
    )
    defaults.update(kwargs)
    return make_deal(name, **defaults)


class TestReadiness:
    """Readiness score and blockers"""

    def test_fully_ready_deal(self, today):
        score, blockers = analyze_readiness(ready_deal(today, stage=DealStage.AWAITING_SIGNATURE))

        assert score == 100
        assert blockers == []

    def test_new_deal_without_next_step(self):
        score, blockers = analyze_readiness(make_deal(stage=DealStage.NEW))

        assert score == 25
        assert blockers == ["مفيش خطوة قادمة محددة", "مفيش موعد للخطوة", "لسه في البداية"]

    @pytest.mark.parametrize("stage", list(DealStage))
    @pytest.mark.parametrize("next_action", [None, "", "   "])
    def test_blank_next_action_is_never_ready(self, stage, next_action, today):
        deal = make_deal(stage=stage, next_action=next_action, next_action_date=today)

        score, blockers = analyze_readiness(deal)

        assert "مفيش خطوة قادمة محددة" in blockers
        assert score < READY_THRESHOLD

    def test_missing_date_only(self):
        score, blockers = analyze_readiness(make_deal(stage=DealStage.TALKING, next_action="كلمه"))

        assert score == 80
        assert blockers == ["مفيش موعد للخطوة"]


class TestExecutionDifficulty:
    """easy / medium / hard"""

    def test_easy(self, today):
        deal = ready_deal(today)

        assert analyze_execution_difficulty(deal, []) == Difficulty.EASY

    def test_hard_with_two_blockers(self):
        deal = make_deal(stage=DealStage.TALKING)
        _, blockers = analyze_readiness(deal)

        assert analyze_execution_difficulty(deal, blockers) == Difficulty.HARD

    def test_hard_when_awaiting_reply_without_next_step(self, today):
        deal = make_deal(stage=DealStage.AWAITING_REPLY, next_action_date=today)
        _, blockers = analyze_readiness(deal)

        assert len(blockers) == 1
        assert analyze_execution_difficulty(deal, blockers) == Difficulty.HARD

    def test_medium(self, today):
        deal = make_deal(stage=DealStage.TALKING, next_action="x", next_action_date=today)

        assert analyze_execution_difficulty(deal, []) == Difficulty.MEDIUM


class TestFocusBands:
    """focus_level is a pure function of the score"""

    @pytest.mark.parametrize("score,level", [
        (100, "critical"), (65, "critical"), (64, "high"), (45, "high"),
        (44, "medium"), (25, "medium"), (24, "low"), (0, "low"),
    ])
    def test_bands(self, score, level):
        assert focus_level(score) == level

    def test_identical_deals_share_focus(self, today):
        report = prioritize(
            [ready_deal(today, name="a", id="a"), ready_deal(today, name="b", id="b")], [], today,
        )

        first, second = report.prioritized_deals
        assert first.priority_score == second.priority_score
        assert first.focus_level == second.focus_level


class TestScenarios:
    """End-to-end scoring of reference deals"""

    def test_new_high_priority_deal_without_next_step(self, today):
        deal = make_deal(stage=DealStage.NEW, priority=DealPriority.HIGH, next_action=None)

        scored = PriorityEngine().score_deal(deal, today)

        assert scored.blockers
        assert scored.readiness_score < 50
        assert scored.priority_score == 48
        assert scored.focus_level in ("critical", "high")
        assert "مهمة بس واقفة" in scored.priority_reasons
        assert scored.suggested_action == "حدد الخطوة الجاية"

    def test_overdue_deal_awaiting_signature(self, today):
        deal = make_deal(
            stage=DealStage.AWAITING_SIGNATURE,
            next_action="sign contract",
            next_action_date=today - timedelta(days=1),
        )

        scored = PriorityEngine().score_deal(deal, today)

        assert "الموعد فات!" in scored.priority_reasons
        assert scored.priority_score == 95
        assert scored.focus_level == "critical"
        assert scored.suggested_action == "لازم تتحرك النهارده"

    def test_reasons_capped_at_three(self, today):
        deal = ready_deal(
            today,
            stage=DealStage.AWAITING_SIGNATURE,
            priority=DealPriority.HIGH,
            next_action_date=today,
            expected_value=500_000,
        )

        scored = PriorityEngine().score_deal(deal, today, total_debt_egp=1000)

        assert len(scored.priority_reasons) == 3
        assert scored.priority_score == 100

    def test_urgency_reason_for_near_dates(self, today):
        scored = PriorityEngine().score_deal(ready_deal(today, next_action_date=today + timedelta(days=2)), today)

        assert "2 أيام للموعد" in scored.priority_reasons


class TestDebtRelief:
    """Debt-aware bonus uses EGP amounts"""

    def test_clears_all_debt(self, today):
        debts = [Debt(creditor_name="Bank", amount=1000, id="b1")]
        report = prioritize([ready_deal(today, stage=DealStage.TALKING, expected_value=2000)], debts, today)

        assert "تسد كل الديون" in report.focus_now.priority_reasons

    def test_usd_value_is_converted_before_comparison(self, today):
        debts = [Debt(creditor_name="Bank", amount=4000, id="b1")]
        report = prioritize(
            [ready_deal(today, stage=DealStage.TALKING, expected_value=100, currency="USD")], debts, today,
        )

        assert "تسد كل الديون" in report.focus_now.priority_reasons

    def test_paid_debts_ignored(self):
        engine = PriorityEngine()
        debts = [
            Debt(creditor_name="paid", amount=1000, is_paid=True),
            Debt(creditor_name="high", amount=100, currency="USD", pressure_level=PressureLevel.HIGH),
        ]

        assert engine.debt_totals(debts) == (5000.0, 5000.0)


class TestRanking:
    """Ordering, exclusions and views"""

    @pytest.mark.parametrize("stage", [DealStage.CLOSED, DealStage.CANCELLED, DealStage.DEFERRED])
    def test_inactive_deals_never_ranked(self, stage, today):
        closed = ready_deal(
            today, name="done", id="done", stage=stage, priority=DealPriority.HIGH,
            next_action_date=today - timedelta(days=1),
        )
        report = prioritize([closed, make_deal("open")], [], today)

        assert "done" not in [d.id for d in report.top_priorities]
        assert "done" not in [d.id for d in report.prioritized_deals]

    def test_tie_broken_by_value_then_name(self, today):
        deals = [
            ready_deal(today, name="b", id="b", expected_value=10),
            ready_deal(today, name="a", id="a", expected_value=10),
            ready_deal(today, name="c", id="c", expected_value=90),
        ]

        report = prioritize(deals, [], today)

        assert [d.id for d in report.prioritized_deals] == ["c", "a", "b"]

    def test_summary_normalizes_currency(self, today):
        deals = [
            ready_deal(today, name="usd", id="usd", expected_value=100, currency="USD"),
            ready_deal(today, name="egp", id="egp", expected_value=100, currency="EGP"),
        ]

        summary = prioritize(deals, [], today).summary

        assert summary.total_value == 5100.0
        assert summary.total_deals == 2

    def test_custom_rate_table(self, today):
        report = PriorityEngine(CurrencyTable({"USD": 10.0})).prioritize(
            [ready_deal(today, expected_value=100, currency="USD")], [], today,
        )

        assert report.summary.total_value == 1000.0

    def test_views(self, today):
        deals = [
            make_deal("stuck", stage=DealStage.NEW, priority=DealPriority.HIGH),
            ready_deal(today, name="easy", id="easy", stage=DealStage.AWAITING_SIGNATURE),
            make_deal("vague", stage=DealStage.TALKING, next_action="كلمه"),
        ]

        report = prioritize(deals, [], today)

        assert report.focus_now.id == "easy"
        assert [d.id for d in report.easy_wins] == ["easy"]
        assert {d.id for d in report.blocked_deals} == {"stuck", "vague"}
        assert {d.id for d in report.needs_attention} == {"stuck", "vague"}
        assert report.summary.blocked_count == 2
        assert len(report.top_priorities) == 3

    def test_empty_report(self, today):
        report = prioritize([], [], today)

        assert report.focus_now is None
        assert report.summary.total_deals == 0
        assert report.to_dataframe().empty

    def test_dataframe_in_rank_order(self, today):
        report = prioritize([make_deal("low"), ready_deal(today, name="top", id="top")], [], today)

        df = report.to_dataframe()

        assert list(df["id"]) == ["top", "low"]
        assert df.loc[0, "stage"] == "مفاوضات"
