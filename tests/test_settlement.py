"""
Unit tests for the settlement calculator and daily record assembly.
"""
import asyncio

import pytest

from conftest import FakeLoyverse, card_receipt, cash_receipt
from pos_closing.errors import ValidationError
from pos_closing.schemas import DailySalesSummary
from pos_closing.settlement.calculator import (
    calculate_daily_settlement,
    calculate_daily_settlement_from_sales,
    calculate_period_business_summary,
    calculate_report_values,
    calculate_safe_box_amount,
    resolve_opening_cash,
)
from pos_closing.settlement.records import build_manual_record, build_synced_record


# =====================================================================
# Per-day derivation
# =====================================================================
class TestReportValues:
    def test_reference_day(self):
        values = calculate_report_values(
            {
                "opening_cash": 1000,
                "net_sale": 5000,
                "safe_box_amount": 2000,
                "card_total": 1500,
                "expense": 200,
                "actual_cash_counted": 1250,
            }
        )
        assert values["expected_cash"] == 6000.0
        assert values["outflow_total"] == 4950.0
        assert values["difference"] == 1050.0

    def test_net_sale_from_totals_when_blank(self):
        values = calculate_report_values({"cash_total": 300.1, "card_total": 200.2, "net_sale": "  "})
        assert values["net_sale"] == 500.3

    def test_submitted_net_sale_wins(self):
        values = calculate_report_values({"cash_total": 300, "card_total": 200, "net_sale": "450"})
        assert values["net_sale"] == 450.0

    def test_safe_box_from_quantity(self):
        values = calculate_report_values({"1k_qty": 3.7, "safe_box_amount": 999})
        assert values["1k_qty"] == 3
        assert values["safe_box_amount"] == 3000.0
        assert values["1k_total"] == 3000.0

    def test_safe_box_amount_in_whole_notes(self):
        values = calculate_report_values({"safe_box_amount": 1500, "opening_cash": 2000})
        assert values["1k_qty"] == 1
        assert values["1k_total"] == 1000.0
        assert values["safe_box_amount"] == 1000.0
        assert values["outflow_total"] == 1000.0
        assert values["difference"] == 1000.0

    def test_shortage_is_negative(self):
        values = calculate_report_values(
            {"opening_cash": 500, "cash_total": 1000, "card_total": 0, "actual_cash_counted": 1600}
        )
        assert values["expected_cash"] == 1500.0
        assert values["difference"] == -100.0

    def test_nulls_are_zero(self):
        values = calculate_report_values({})
        assert values["expected_cash"] == 0.0
        assert values["difference"] == 0.0

    def test_no_float_drift(self):
        values = calculate_report_values({"cash_total": 0.1, "card_total": 0.2, "opening_cash": 0.3})
        assert values["net_sale"] == 0.3
        assert values["expected_cash"] == 0.6


class TestSafeBox:
    @pytest.mark.parametrize("qty, expected", [(7, 7000.0), (2.9, 2000.0), (-3, 0.0), ("4", 4000.0), (None, 0.0)])
    def test_count(self, qty, expected):
        assert calculate_safe_box_amount(qty) == expected

    def test_custom_denomination(self):
        assert calculate_safe_box_amount(3, denomination=500) == 1500.0


class TestCarryForward:
    def test_prefers_counted_cash(self):
        assert resolve_opening_cash({"actual_cash_counted": 1250, "expected_cash": 1300}) == 1250.0

    def test_counted_zero_is_present(self):
        assert resolve_opening_cash({"actual_cash_counted": 0, "expected_cash": 1300}) == 0.0

    def test_falls_back_to_expected(self):
        assert resolve_opening_cash({"actual_cash_counted": None, "expected_cash": 1300}) == 1300.0

    def test_no_prior(self):
        assert resolve_opening_cash(None) == 0.0
        assert resolve_opening_cash({"actual_cash_counted": None, "expected_cash": None}) == 0.0


# =====================================================================
# Period summary
# =====================================================================
class TestPeriodSummary:
    def test_totals(self):
        summary = calculate_period_business_summary(
            [
                {"cashSales": 100.1, "cardSales": 50, "expenses": 20, "tips": 5, "safeBoxAmount": 1000},
                {"cash_total": 0.2, "card_total": 25.5, "expense": 10, "tip": 0, "safe_box_amount": 0},
            ]
        )
        assert summary.cash_total == 100.3
        assert summary.card_total == 75.5
        assert summary.revenue_total == 175.8
        assert summary.expense_total == 30.0
        assert summary.net_revenue_after_expense == 145.8
        assert summary.tips_total == 5.0
        assert summary.safe_box_total == 1000.0

    def test_rounded_once_after_summing(self):
        days = [{"cashSales": 0.005}, {"cashSales": 0.005}]
        assert calculate_period_business_summary(days).cash_total == 0.01

    def test_empty(self):
        assert calculate_period_business_summary([]).revenue_total == 0.0

    def test_negative_names_index(self):
        with pytest.raises(ValidationError) as exc:
            calculate_period_business_summary([{"cashSales": -1, "cardSales": 0}])
        assert exc.value.index == 0
        assert "days[0]" in str(exc.value)

    def test_non_numeric_names_index(self):
        with pytest.raises(ValidationError) as exc:
            calculate_period_business_summary([{"cashSales": 1}, {"tips": "lots"}])
        assert exc.value.index == 1
        assert exc.value.field == "tips"

    def test_non_list_is_type_error(self):
        with pytest.raises(TypeError):
            calculate_period_business_summary({"cashSales": 1})


# =====================================================================
# Per-transaction settlement
# =====================================================================
class TestDailySettlement:
    def test_totals(self):
        result = calculate_daily_settlement(
            500,
            [{"type": "cash", "amount": 100}, {"type": "CARD", "amount": "50.25"}],
            30,
        )
        assert result.cash_sales == 100.0
        assert result.card_sales == 50.25
        assert result.total_revenue == 150.25
        assert result.expected_closing_cash == 570.0

    def test_bad_type_names_index(self):
        with pytest.raises(ValidationError) as exc:
            calculate_daily_settlement(0, [{"type": "cash", "amount": 1}, {"type": "voucher", "amount": 1}], 0)
        assert exc.value.index == 1

    def test_negative_amount(self):
        with pytest.raises(ValidationError) as exc:
            calculate_daily_settlement(0, [{"type": "cash", "amount": -5}], 0)
        assert exc.value.index == 0

    def test_opening_cash_must_be_number(self):
        with pytest.raises(ValidationError) as exc:
            calculate_daily_settlement("100", [], 0)
        assert exc.value.field == "openingCash"

    def test_transactions_must_be_list(self):
        with pytest.raises(TypeError):
            calculate_daily_settlement(0, "cash", 0)

    def test_from_reconciled_sales(self):
        fake = FakeLoyverse(pages=[{"receipts": [cash_receipt(300), card_receipt(120.5)]}])

        async def _run():
            async with fake.client() as loyverse:
                return await calculate_daily_settlement_from_sales(
                    "2024-03-15", 500, 50, loyverse, timezone="Asia/Bangkok"
                )

        result = asyncio.run(_run())
        assert result.cash_sales == 300.0
        assert result.card_sales == 120.5
        assert result.total_revenue == 420.5
        assert result.expected_closing_cash == 750.0

    def test_from_sales_validates_before_fetching(self):
        fake = FakeLoyverse()

        async def _run():
            async with fake.client() as loyverse:
                return await calculate_daily_settlement_from_sales("2024-03-15", -1, 0, loyverse)

        with pytest.raises(ValidationError) as exc:
            asyncio.run(_run())
        assert exc.value.field == "openingCash"
        assert fake.receipt_requests == []


# =====================================================================
# Record assembly
# =====================================================================
class TestRecords:
    def test_manual_record(self):
        record = build_manual_record(
            {
                "date": "2024-03-15",
                "cash_total": 4000,
                "card_total": 1500,
                "total_orders": "42",
                "expense": 200,
                "1k_qty": 2,
                "opening_cash": 1000,
                "actual_cash_counted": 1250,
            }
        )
        assert record["net_sale"] == 5500.0
        assert record["safe_box_amount"] == 2000.0
        assert record["safe_box_label"] == "1K Bill"
        assert record["total_orders"] == 42
        assert record["expected_cash"] == 6500.0
        assert record["difference"] == 1550.0

    def test_manual_blank_cash_fields_stay_null(self):
        record = build_manual_record({"date": "2024-03-15"})
        assert record["opening_cash"] is None
        assert record["actual_cash_counted"] is None

    def test_manual_rejects_bad_date(self):
        with pytest.raises(ValidationError):
            build_manual_record({"date": "2024-02-30"})

    def test_manual_rejects_negative(self):
        with pytest.raises(ValidationError) as exc:
            build_manual_record({"date": "2024-03-15", "expense": -1})
        assert exc.value.field == "expense"

    def test_manual_rejects_partial_note_safe_box(self):
        with pytest.raises(ValidationError) as exc:
            build_manual_record({"date": "2024-03-15", "safe_box_amount": 1500})
        assert exc.value.field == "safe_box_amount"

    def test_manual_safe_box_from_amount(self):
        record = build_manual_record({"date": "2024-03-15", "safe_box_amount": 3000})
        assert record["1k_qty"] == 3
        assert record["1k_total"] == 3000.0
        assert record["safe_box_amount"] == 3000.0

    def test_manual_rejects_negative_orders(self):
        with pytest.raises(ValidationError) as exc:
            build_manual_record({"date": "2024-03-15", "total_orders": -3})
        assert exc.value.field == "total_orders"

    def test_synced_preserves_manual_fields(self):
        summary = DailySalesSummary(date="2024-03-15", cash_total=800, card_total=200, net_sale=1000, total_orders=9)
        existing = {
            "opening_cash": 500,
            "expense": 50,
            "tip": 20,
            "safe_box_label": "Envelope",
            "safe_box_amount": 1000,
            "actual_cash_counted": 300,
        }
        record = build_synced_record(summary, existing, prior={"actual_cash_counted": 9999})
        assert record["opening_cash"] == 500.0
        assert record["expense"] == 50.0
        assert record["tip"] == 20.0
        assert record["safe_box_label"] == "Envelope"
        assert record["1k_qty"] == 1
        assert record["total_orders"] == 9
        assert record["net_sale"] == 1000.0
        assert record["expected_cash"] == 1500.0
        assert record["difference"] == 1500.0 - (1000 + 200 + 50 + 300)

    def test_synced_carries_opening_cash_forward(self):
        summary = DailySalesSummary(date="2024-03-15", cash_total=100, card_total=0, net_sale=100)
        record = build_synced_record(summary, None, prior={"actual_cash_counted": None, "expected_cash": 750})
        assert record["opening_cash"] == 750.0
        assert record["actual_cash_counted"] is None
        assert record["expected_cash"] == 850.0
