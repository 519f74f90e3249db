"""
Unit tests for discount extraction and percentage inference.
"""
import pytest

from pos_closing.reconciliation.discounts import (
    MAX_PERCENT_DEPTH,
    create_discount_entry,
    discount_amount,
    extract_discount_entries,
    extract_explicit_percentage,
    infer_percentage,
    parse_percentage,
)


# =====================================================================
# Explicit percentages
# =====================================================================
class TestParsePercentage:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (10, 10.0),
            (0.1, 10.0),
            ("15%", 15.0),
            ("0.5%", 0.5),
            ("0.25", 25.0),
            (-20, 20.0),
            (12.345, 12.35),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_percentage(raw) == expected

    @pytest.mark.parametrize("raw", [None, 0, 100, 150, "abc", True, {"value": 10}])
    def test_rejected(self, raw):
        assert parse_percentage(raw) is None


class TestExplicitPercentage:
    def test_direct_field(self):
        assert extract_explicit_percentage({"percentage": 10}) == 10.0
        assert extract_explicit_percentage({"rate": 0.05}) == 5.0

    def test_percent_typed_value(self):
        entry = {"type": "FIXED_PERCENT", "value": "20"}
        assert extract_explicit_percentage(entry) == 20.0

    def test_amount_typed_value_ignored(self):
        assert extract_explicit_percentage({"type": "FIXED_AMOUNT", "value": 20}) is None

    def test_nested_discount_object(self):
        line = {"price": 100, "line_discounts": [{"name": "Staff", "discount": {"percent": 30}}]}
        assert extract_explicit_percentage(line) == 30.0

    def test_cycle_is_guarded(self):
        entry = {"name": "loop"}
        entry["discount"] = entry
        assert extract_explicit_percentage(entry) is None

    def test_depth_is_bounded(self):
        entry = {"percentage": 40}
        for _ in range(MAX_PERCENT_DEPTH + 2):
            entry = {"discount": entry}
        assert extract_explicit_percentage(entry) is None

    def test_non_dict(self):
        assert extract_explicit_percentage("10%") is None


# =====================================================================
# Inference
# =====================================================================
class TestInferPercentage:
    def test_gross_base(self):
        assert infer_percentage(50, gross_bases=[500]) == 10.0

    def test_net_fallback(self):
        assert infer_percentage(50, net_bases=[450]) == 10.0

    def test_gross_preferred_over_net(self):
        assert infer_percentage(50, gross_bases=[200], net_bases=[450]) == 25.0

    def test_base_must_exceed_amount(self):
        assert infer_percentage(50, gross_bases=[50, 40]) is None

    def test_most_frequent_wins(self):
        assert infer_percentage(30, gross_bases=[100, 300, 300]) == 10.0

    def test_tie_prefers_whole_number(self):
        # 30/90 = 33.33, 30/300 = 10
        assert infer_percentage(30, gross_bases=[90, 300]) == 10.0

    def test_tie_then_larger(self):
        # 20 and 10 both whole
        assert infer_percentage(20, gross_bases=[100, 200]) == 20.0

    def test_zero_amount(self):
        assert infer_percentage(0, gross_bases=[100]) is None


# =====================================================================
# Amounts and entries
# =====================================================================
class TestAmounts:
    def test_negative_sign_convention(self):
        assert discount_amount({"money_amount": -25}) == 25.0

    def test_nested_amount_money(self):
        assert discount_amount({"amount_money": {"amount": 12.5}}) == 12.5

    def test_value_is_money_unless_percent_typed(self):
        assert discount_amount({"type": "FIXED_AMOUNT", "value": 30}) == 30.0
        assert discount_amount({"type": "PERCENTAGE", "value": 30}) == 0.0

    def test_create_entry_drops_non_positive(self):
        assert create_discount_entry(0) is None
        entry = create_discount_entry(-10.004, 150)
        assert entry.amount == 10.0
        assert entry.percentage is None


# =====================================================================
# Receipt extraction
# =====================================================================
class TestExtractDiscountEntries:
    def test_line_price_times_quantity(self):
        receipt = {
            "line_items": [
                {"price_money": 500, "quantity": 1, "discount_amount": 50},
            ]
        }
        entries = extract_discount_entries(receipt)
        assert [(e.amount, e.percentage) for e in entries] == [(50.0, 10.0)]

    def test_line_quantity_scales_gross(self):
        receipt = {"line_items": [{"price": 100, "quantity": "4", "total_discount": 40}]}
        assert extract_discount_entries(receipt)[0].percentage == 10.0

    def test_receipt_net_fallback(self):
        receipt = {"total_discount": 50, "total_money": 450}
        entries = extract_discount_entries(receipt)
        assert [(e.amount, e.percentage) for e in entries] == [(50.0, 10.0)]

    def test_receipt_level_explicit_percentage(self):
        receipt = {"discounts": [{"name": "Promo", "percentage": 15, "money_amount": 30}]}
        entries = extract_discount_entries(receipt)
        assert entries[0].amount == 30.0
        assert entries[0].percentage == 15.0

    def test_receipt_object_resolves_through_matching_line(self):
        receipt = {
            "total_money": 1000,
            "discounts": [{"name": "Member", "money_amount": 20}],
            "line_items": [
                {"price": 300, "quantity": 1, "total_discount": 0},
                {"price": 200, "quantity": 1, "total_discount": 20},
            ],
        }
        entries = extract_discount_entries(receipt)
        # receipt-level object + the matching line's own entry
        assert entries[0].amount == 20.0
        assert entries[0].percentage == 10.0

    def test_receipt_object_falls_back_to_receipt_context(self):
        receipt = {
            "gross_total_money": 400,
            "applied_discounts": [{"name": "Happy hour", "amount": 100}],
        }
        assert extract_discount_entries(receipt)[0].percentage == 25.0

    def test_line_discount_list_uses_line_context(self):
        receipt = {
            "line_items": [
                {
                    "gross_total_money": 250,
                    "total_money": 200,
                    "line_discounts": [{"name": "Staff", "money_amount": 50}],
                }
            ]
        }
        entries = extract_discount_entries(receipt)
        assert [(e.amount, e.percentage) for e in entries] == [(50.0, 20.0)]

    def test_line_discount_inherits_line_percentage(self):
        receipt = {
            "line_items": [
                {"percentage": 5, "applied_discounts": [{"amount": 7}]},
            ]
        }
        entries = extract_discount_entries(receipt)
        assert entries[0].percentage == 5.0

    def test_direct_line_field_skips_line_lists(self):
        receipt = {
            "line_items": [
                {
                    "price": 100,
                    "total_discount": 10,
                    "line_discounts": [{"money_amount": 10, "percentage": 10}],
                }
            ]
        }
        entries = extract_discount_entries(receipt)
        assert len(entries) == 1
        assert entries[0].percentage == 10.0

    def test_structured_entries_suppress_receipt_fallback(self):
        receipt = {
            "total_discount": 99,
            "discounts": [{"money_amount": 10}],
        }
        entries = extract_discount_entries(receipt)
        assert [e.amount for e in entries] == [10.0]

    def test_no_inferable_context(self):
        entries = extract_discount_entries({"discount": 25})
        assert [(e.amount, e.percentage) for e in entries] == [(25.0, None)]

    def test_zero_discounts_dropped(self):
        receipt = {"discounts": [{"money_amount": 0}], "line_items": [{"total_discount": 0}]}
        assert extract_discount_entries(receipt) == []

    def test_malformed_discount_objects_skipped(self):
        receipt = {"discounts": ["10%", None, {"money_amount": 5}]}
        assert [e.amount for e in extract_discount_entries(receipt)] == [5.0]

    def test_divisor(self):
        receipt = {"total_discount": 5000, "total_money": 45000}
        entries = extract_discount_entries(receipt, divisor=100)
        assert [(e.amount, e.percentage) for e in entries] == [(50.0, 10.0)]
