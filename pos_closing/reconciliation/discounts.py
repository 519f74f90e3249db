"""
Discount extraction and percentage inference.

Discounts show up at receipt level and per line item, either as direct money
fields or as structured discount objects. When a percentage is not stated it
is inferred by comparing the discount amount with plausible base amounts
found on the discount object, the matching line item, or the receipt.
"""
from __future__ import annotations

import logging
from collections import Counter, deque
from typing import Any, Iterable, Iterator, Optional

from pos_closing.reconciliation.fields import join_text, lookup, resolve
from pos_closing.reconciliation.money import normalize_money, round_currency, to_number
from pos_closing.schemas import DiscountEntry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Field aliases
# ---------------------------------------------------------------------------

DISCOUNT_AMOUNTS = (
    "money_amount",
    "amount_money.amount",
    "amount_money",
    "amount",
    "discount_money",
    "discount_amount",
    "total_discount_money",
)
PERCENT_FIELDS = ("percentage", "percent", "rate", "discount_rate", "value_percentage")
PERCENT_TYPE_FIELDS = (
    "type",
    "discount_type",
    "value_type",
    "calculation_type",
    "amount_type",
)

RECEIPT_DISCOUNT_LISTS = ("discounts", "applied_discounts")
RECEIPT_DISCOUNT_MONEY = (
    "total_discounts_money",
    "total_discount_money",
    "total_discount",
    "discount_money",
    "discount_amount",
    "discount",
)
LINE_ITEM_LISTS = ("line_items", "items")
LINE_DISCOUNT_LISTS = ("discounts", "applied_discounts", "line_discounts")
LINE_DISCOUNT_MONEY = (
    "total_discounts_money",
    "total_discount_money",
    "total_discount",
    "discount_money",
    "discount_amount",
    "discount",
)

LINE_GROSS = (
    "gross_total_money",
    "gross_money",
    "gross_sales_money",
    "total_before_discount",
    "subtotal_money",
    "subtotal",
    "base_amount",
)
LINE_NET = ("total_money", "net_total_money", "net_money", "total")
UNIT_PRICE = ("price_money", "price", "unit_price", "base_price_money")
QUANTITY = ("quantity", "qty")

RECEIPT_GROSS = (
    "gross_total_money",
    "total_before_discounts",
    "total_before_discount",
    "subtotal_money",
    "subtotal",
)
RECEIPT_NET = ("total_money", "total", "total_paid_money", "net_total_money")

# Nested discount objects are searched this deep at most.
MAX_PERCENT_DEPTH = 4


# ---------------------------------------------------------------------------
# Explicit percentages
# ---------------------------------------------------------------------------

def _accept_percentage(value: float) -> Optional[float]:
    pct = round_currency(value)
    return pct if 0 < pct < 100 else None


def parse_percentage(raw: Any) -> Optional[float]:
    """Read a percentage from ``10``, ``0.1``, ``"10%"`` or ``"0.1"``.

    Numbers strictly between 0 and 1 are fractions; a trailing ``%`` always
    means the number is already a percent.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        text = raw.strip()
        explicit = text.endswith("%")
        number = abs(to_number(text.rstrip("%").strip()))
        if explicit:
            return _accept_percentage(number)
    elif isinstance(raw, (int, float)):
        number = abs(to_number(raw))
    else:
        return None
    if 0 < number < 1:
        number *= 100
    return _accept_percentage(number)


def _is_percent_typed(entry: dict) -> bool:
    type_text = join_text(entry.get(key) for key in PERCENT_TYPE_FIELDS)
    return "PERCENT" in type_text.upper()


def _own_percentage(entry: dict) -> Optional[float]:
    for key in PERCENT_FIELDS:
        pct = parse_percentage(entry.get(key))
        if pct is not None:
            return pct
    if _is_percent_typed(entry):
        return parse_percentage(entry.get("value"))
    return None


def extract_explicit_percentage(entry: Any) -> Optional[float]:
    """Find a stated percentage on *entry* or its nested discount objects.

    Breadth-first over keys mentioning "discount", bounded by
    ``MAX_PERCENT_DEPTH`` and guarded against cycles by object identity.
    """
    if not isinstance(entry, dict):
        return None

    queue: deque[tuple[Any, int]] = deque([(entry, 0)])
    visited: set[int] = set()
    while queue:
        node, depth = queue.popleft()
        if id(node) in visited:
            continue
        visited.add(id(node))

        if isinstance(node, dict):
            pct = _own_percentage(node)
            if pct is not None:
                return pct
            children: Iterable[Any] = [
                value for key, value in node.items() if "discount" in str(key).lower()
            ]
        else:
            children = node

        if depth >= MAX_PERCENT_DEPTH:
            continue
        for child in children:
            if isinstance(child, (dict, list)):
                queue.append((child, depth + 1))
    return None


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------

def _money_candidates(obj: dict, paths: Iterable[str], divisor: int) -> list[float]:
    values: list[float] = []
    for path in paths:
        raw = lookup(obj, path)
        if raw is None:
            continue
        amount = abs(normalize_money(raw, divisor))
        if amount > 0:
            values.append(amount)
    return values


def _line_gross_candidates(line: dict, divisor: int) -> list[float]:
    values = _money_candidates(line, LINE_GROSS, divisor)
    price = resolve(line, UNIT_PRICE)
    if price is not None:
        quantity = abs(to_number(resolve(line, QUANTITY, 1))) or 1
        gross = round_currency(abs(normalize_money(price, divisor)) * quantity)
        if gross > 0:
            values.append(gross)
    return values


def _receipt_gross_candidates(receipt: dict, lines: list[dict], divisor: int) -> list[float]:
    values = _money_candidates(receipt, RECEIPT_GROSS, divisor)
    line_totals = [_line_gross_candidates(line, divisor) for line in lines]
    if line_totals and all(line_totals):
        summed = round_currency(sum(candidates[0] for candidates in line_totals))
        if summed > 0:
            values.append(summed)
    return values


def _candidate_percentages(amount: float, bases: Iterable[float]) -> list[float]:
    percentages: list[float] = []
    for base in bases:
        if base <= amount:
            continue
        pct = _accept_percentage(amount / base * 100)
        if pct is not None:
            percentages.append(pct)
    return percentages


def infer_percentage(
    amount: float,
    gross_bases: Iterable[float] = (),
    net_bases: Iterable[float] = (),
) -> Optional[float]:
    """Infer a discount percentage from candidate base amounts.

    Gross (before discount) bases are preferred; net (after discount) bases
    are used only when no gross base yields a valid percentage, with the
    base rebuilt as ``net + amount``. The most frequent candidate wins, then
    the one closest to a whole number, then the larger one.
    """
    amount = abs(amount)
    if amount <= 0:
        return None

    percentages = _candidate_percentages(amount, gross_bases)
    if not percentages:
        rebuilt = [round_currency(net + amount) for net in net_bases]
        percentages = _candidate_percentages(amount, rebuilt)
    if not percentages:
        return None

    counts = Counter(percentages)
    return max(counts, key=lambda p: (counts[p], -abs(p - round(p)), p))


def _infer_from_line(line: dict, amount: float, divisor: int) -> Optional[float]:
    return infer_percentage(
        amount,
        _line_gross_candidates(line, divisor),
        _money_candidates(line, LINE_NET, divisor),
    )


def _infer_from_receipt(
    receipt: dict, lines: list[dict], amount: float, divisor: int
) -> Optional[float]:
    return infer_percentage(
        amount,
        _receipt_gross_candidates(receipt, lines, divisor),
        _money_candidates(receipt, RECEIPT_NET, divisor),
    )


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

def discount_amount(entry: Any, divisor: int = 1) -> float:
    """Positive magnitude of a discount object's money value."""
    if not isinstance(entry, dict):
        return 0.0
    raw = resolve(entry, DISCOUNT_AMOUNTS)
    if raw is None and not _is_percent_typed(entry):
        # "value" is only money when the discount is not percent-typed
        raw = entry.get("value")
    return abs(normalize_money(raw, divisor))


def _first_nonzero_money(obj: dict, paths: Iterable[str], divisor: int) -> float:
    for path in paths:
        amount = abs(normalize_money(lookup(obj, path), divisor))
        if amount > 0:
            return amount
    return 0.0


def _discount_objects(obj: dict, lists: Iterable[str]) -> Iterator[dict]:
    for key in lists:
        items = obj.get(key)
        if not isinstance(items, list):
            continue
        for idx, item in enumerate(items):
            if isinstance(item, dict):
                yield item
            else:
                logger.warning(
                    "Skipping unparseable discount %s[%d] (%s)",
                    key,
                    idx,
                    type(item).__name__,
                )


def _line_items(receipt: dict) -> list[dict]:
    for key in LINE_ITEM_LISTS:
        items = receipt.get(key)
        if isinstance(items, list) and items:
            return [item for item in items if isinstance(item, dict)]
    return []


def _from_matching_lines(
    lines: list[dict], amount: float, divisor: int
) -> Optional[float]:
    """Resolve a percentage through line items carrying the same discount amount."""
    for line in lines:
        amounts = {_first_nonzero_money(line, LINE_DISCOUNT_MONEY, divisor)}
        amounts.update(
            discount_amount(d, divisor) for d in _discount_objects(line, LINE_DISCOUNT_LISTS)
        )
        if amount not in amounts:
            continue
        pct = extract_explicit_percentage(line) or _infer_from_line(line, amount, divisor)
        if pct is not None:
            return pct
    return None


def create_discount_entry(amount: float, percentage: Optional[float] = None) -> Optional[DiscountEntry]:
    amount = round_currency(abs(amount))
    if amount <= 0:
        return None
    if percentage is not None:
        percentage = _accept_percentage(abs(percentage))
    return DiscountEntry(amount=amount, percentage=percentage)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_discount_entries(receipt: dict[str, Any], divisor: int = 1) -> list[DiscountEntry]:
    """Return every discount applied on *receipt*, positive amounts only."""
    lines = _line_items(receipt)
    entries: list[DiscountEntry] = []

    def add(amount: float, percentage: Optional[float]) -> None:
        entry = create_discount_entry(amount, percentage)
        if entry is not None:
            entries.append(entry)

    for discount in _discount_objects(receipt, RECEIPT_DISCOUNT_LISTS):
        amount = discount_amount(discount, divisor)
        if amount <= 0:
            continue
        add(
            amount,
            extract_explicit_percentage(discount)
            or _infer_from_line(discount, amount, divisor)
            or _from_matching_lines(lines, amount, divisor)
            or _infer_from_receipt(receipt, lines, amount, divisor),
        )

    for line in lines:
        direct = _first_nonzero_money(line, LINE_DISCOUNT_MONEY, divisor)
        if direct > 0:
            add(
                direct,
                extract_explicit_percentage(line) or _infer_from_line(line, direct, divisor),
            )
            continue

        for discount in _discount_objects(line, LINE_DISCOUNT_LISTS):
            amount = discount_amount(discount, divisor)
            if amount <= 0:
                continue
            add(
                amount,
                extract_explicit_percentage(discount)
                or extract_explicit_percentage(line)
                or _infer_from_line(discount, amount, divisor)
                or _infer_from_line(line, amount, divisor),
            )

    if entries:
        return entries

    amount = _first_nonzero_money(receipt, RECEIPT_DISCOUNT_MONEY, divisor)
    if amount <= 0:
        return []
    add(
        amount,
        extract_explicit_percentage(receipt)
        or _infer_from_receipt(receipt, lines, amount, divisor),
    )
    return entries
