"""
Quotation totals and catalog price calculation.

Everything here is pure: callers hand in line items and rates, and get back
immutable results. Money is ``Decimal`` in whole đồng (VND has no minor unit
in practice), rounded half-up wherever a percentage produces a fraction.

Quotation totals (rounding is applied per line, to the margin and to the tax;
the two subtotals and the total are exact sums of rounded parts, so
``subtotal_after_margin + tax == total`` always holds):

    items_total            = SUM(round(qty * unit_price))  -- named items only
    subtotal_before_margin = items_total + material + labor + travel
    margin_amount          = round(subtotal_before_margin * margin_rate%)
    subtotal_after_margin  = subtotal_before_margin + margin_amount
    tax                    = round(subtotal_after_margin * tax_rate%)
    total                  = subtotal_after_margin + tax

Catalog selling price (compounding markups, ceilings taken on exact values):

    after_pit    = base * (1 + pit%)
    after_profit = after_pit * (1 + profit%)
    final (VAT incl.) = ceil_to_thousand(after_profit * (1 + vat%))
    net   (VAT excl.) = ceil_to_thousand(after_profit)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_CEILING, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional, Tuple

from suanha.services.errors import ValidationError

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
THOUSAND = Decimal("1000")

# Mirrors the Numeric columns the inputs are stored in.
MONEY_PLACES, MONEY_LIMIT = 0, Decimal("1e14")
RATE_PLACES, RATE_LIMIT = 2, Decimal("1000")
QUANTITY_PLACES, QUANTITY_LIMIT = 3, Decimal("1e9")


# --- coercion -------------------------------------------------------------

def _to_decimal(value: Any, field_name: str) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field_name, "is required")
    if isinstance(value, bool):
        raise ValidationError(field_name, "must be a number")
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(field_name, "must be a number") from None
    if not d.is_finite():
        raise ValidationError(field_name, "must be a finite number")
    return d


def whole(value: Decimal) -> Decimal:
    """Round half-up to a whole currency unit."""
    return value.quantize(ONE, rounding=ROUND_HALF_UP)


def _decimal_places(d: Decimal) -> int:
    exponent = d.normalize().as_tuple().exponent
    return max(0, -exponent)


def _bounded(value: Any, field_name: str, places: int, limit: Optional[Decimal] = None) -> Decimal:
    d = _to_decimal(value, field_name)
    if d < 0:
        raise ValidationError(field_name, "must not be negative")
    if _decimal_places(d) > places:
        if places == 0:
            raise ValidationError(field_name, "must be a whole amount")
        raise ValidationError(field_name, f"must have at most {places} decimal places")
    if limit is not None and d >= limit:
        raise ValidationError(field_name, f"must be less than {limit:f}")
    return d


def to_money(value: Any, field_name: str) -> Decimal:
    return _bounded(value, field_name, MONEY_PLACES, MONEY_LIMIT).quantize(ONE)


def to_rate(value: Any, field_name: str) -> Decimal:
    return _bounded(value, field_name, RATE_PLACES, RATE_LIMIT)


def to_quantity(value: Any, field_name: str, places: int = QUANTITY_PLACES) -> Decimal:
    return _bounded(value, field_name, places, QUANTITY_LIMIT)


def ceil_to_thousand(value: Any) -> Decimal:
    """Round up to the next multiple of 1000 (no-op on exact multiples, 0 -> 0)."""
    d = _to_decimal(value, "value")
    return ((d / THOUSAND).to_integral_value(rounding=ROUND_CEILING) * THOUSAND).quantize(ONE)


def _money_out(d: Decimal) -> int:
    return int(d)


def _rate_out(d: Decimal) -> float:
    return float(d)


# --- quotation totals -----------------------------------------------------

@dataclass(frozen=True)
class LineItem:
    name: str
    quantity: Decimal
    unit_price: Decimal

    def __post_init__(self):
        name = (self.name or "").strip()
        quantity = to_quantity(self.quantity, "quantity")
        unit_price = to_money(self.unit_price, "unit_price")
        if name and quantity == 0:
            raise ValidationError("quantity", "must be greater than zero")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "unit_price", unit_price)

    @property
    def is_billable(self) -> bool:
        # Rows without a name are blank form rows; they are never billed or stored.
        return bool(self.name)

    @property
    def amount(self) -> Decimal:
        return whole(self.quantity * self.unit_price)


@dataclass(frozen=True)
class QuotationRates:
    margin_rate: Decimal = Decimal("15")
    tax_rate: Decimal = Decimal("10")

    def __post_init__(self):
        object.__setattr__(self, "margin_rate", to_rate(self.margin_rate, "margin_rate"))
        object.__setattr__(self, "tax_rate", to_rate(self.tax_rate, "tax_rate"))


@dataclass(frozen=True)
class QuotationCostInputs:
    items: Tuple[LineItem, ...] = ()
    material_cost: Decimal = ZERO
    labor_cost: Decimal = ZERO
    travel_cost: Decimal = ZERO
    rates: QuotationRates = field(default_factory=QuotationRates)

    def __post_init__(self):
        items = tuple(self.items or ())
        for item in items:
            if not isinstance(item, LineItem):
                raise ValidationError("items", "must contain line items")
        object.__setattr__(self, "items", items)
        for name in ("material_cost", "labor_cost", "travel_cost"):
            object.__setattr__(self, name, to_money(getattr(self, name), name))
        if not isinstance(self.rates, QuotationRates):
            raise ValidationError("rates", "must be quotation rates")

    @property
    def margin_rate(self) -> Decimal:
        return self.rates.margin_rate

    @property
    def tax_rate(self) -> Decimal:
        return self.rates.tax_rate

    @property
    def billable_items(self) -> List[LineItem]:
        return [item for item in self.items if item.is_billable]


@dataclass(frozen=True)
class QuotationTotals:
    items_total: Decimal
    subtotal_before_margin: Decimal
    margin_amount: Decimal
    subtotal_after_margin: Decimal
    tax: Decimal
    total: Decimal

    def to_dict(self) -> dict:
        return dict(
            items_total=_money_out(self.items_total),
            subtotal_before_margin=_money_out(self.subtotal_before_margin),
            margin_amount=_money_out(self.margin_amount),
            subtotal_after_margin=_money_out(self.subtotal_after_margin),
            tax=_money_out(self.tax),
            total=_money_out(self.total),
        )


def line_items_from_dicts(rows: Optional[Iterable[dict]]) -> List[LineItem]:
    """
    Build line items from request rows ({item_name|name, quantity, unit_price}).
    Field errors are re-labelled with the row index, e.g. ``items[2].quantity``.
    """
    items: List[LineItem] = []
    if rows is None:
        return items
    if isinstance(rows, (str, bytes, dict)):
        raise ValidationError("items", "must be a list")
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValidationError(f"items[{idx}]", "must be an object")
        name = row.get("item_name", row.get("name"))
        name = name if isinstance(name, str) else ""
        quantity, unit_price = row.get("quantity"), row.get("unit_price")
        if not name.strip():
            # untouched form row
            quantity = ZERO if quantity in (None, "") else quantity
            unit_price = ZERO if unit_price in (None, "") else unit_price
        try:
            items.append(LineItem(name=name, quantity=quantity, unit_price=unit_price))
        except ValidationError as e:
            raise ValidationError(f"items[{idx}].{e.field}", e.reason) from None
    return items


def compute_quotation_totals(inputs: QuotationCostInputs) -> QuotationTotals:
    items_total = sum((item.amount for item in inputs.billable_items), ZERO)
    subtotal_before = items_total + inputs.material_cost + inputs.labor_cost + inputs.travel_cost
    margin_amount = whole(subtotal_before * inputs.margin_rate / HUNDRED)
    subtotal_after = subtotal_before + margin_amount
    tax = whole(subtotal_after * inputs.tax_rate / HUNDRED)
    return QuotationTotals(
        items_total=items_total,
        subtotal_before_margin=subtotal_before,
        margin_amount=margin_amount,
        subtotal_after_margin=subtotal_after,
        tax=tax,
        total=subtotal_after + tax,
    )


# --- catalog selling price ------------------------------------------------

@dataclass(frozen=True)
class MarkupRates:
    personal_income_tax_rate: Decimal = Decimal("10")
    profit_rate: Decimal = Decimal("30")
    vat_rate: Decimal = Decimal("8")

    def __post_init__(self):
        for name in ("personal_income_tax_rate", "profit_rate", "vat_rate"):
            object.__setattr__(self, name, to_rate(getattr(self, name), name))

    def to_dict(self) -> dict:
        return dict(
            personal_income_tax_rate=_rate_out(self.personal_income_tax_rate),
            profit_rate=_rate_out(self.profit_rate),
            vat_rate=_rate_out(self.vat_rate),
        )


@dataclass(frozen=True)
class CostToPriceInputs:
    base_cost: Decimal
    rates: MarkupRates = field(default_factory=MarkupRates)

    def __post_init__(self):
        object.__setattr__(self, "base_cost", to_money(self.base_cost, "base_cost"))
        if not isinstance(self.rates, MarkupRates):
            raise ValidationError("rates", "must be markup rates")


@dataclass(frozen=True)
class PriceBreakdown:
    base_cost: Decimal
    after_personal_income_tax: Decimal
    personal_income_tax_amount: Decimal
    after_profit: Decimal
    profit_amount: Decimal
    final_price_vat_inclusive: Decimal
    vat_amount: Decimal
    net_price_vat_exclusive: Decimal
    rates: MarkupRates

    def to_dict(self) -> dict:
        return dict(
            base_cost=_money_out(self.base_cost),
            after_personal_income_tax=_money_out(self.after_personal_income_tax),
            personal_income_tax_amount=_money_out(self.personal_income_tax_amount),
            after_profit=_money_out(self.after_profit),
            profit_amount=_money_out(self.profit_amount),
            final_price_vat_inclusive=_money_out(self.final_price_vat_inclusive),
            vat_amount=_money_out(self.vat_amount),
            net_price_vat_exclusive=_money_out(self.net_price_vat_exclusive),
            rates=self.rates.to_dict(),
        )


def compute_selling_price(base_cost: Any, rates: Optional[MarkupRates] = None) -> PriceBreakdown:
    inputs = CostToPriceInputs(base_cost=base_cost, rates=rates or MarkupRates())
    r = inputs.rates
    base = inputs.base_cost

    after_pit = base * (ONE + r.personal_income_tax_rate / HUNDRED)
    after_profit = after_pit * (ONE + r.profit_rate / HUNDRED)
    with_vat = after_profit * (ONE + r.vat_rate / HUNDRED)

    final_price = ceil_to_thousand(with_vat)
    net_price = ceil_to_thousand(after_profit)

    # Displayed stages are whole units; amounts are differences of displayed
    # stages. vat_amount keeps the ceiling remainder (final - after_profit).
    shown_after_pit = whole(after_pit)
    shown_after_profit = whole(after_profit)

    return PriceBreakdown(
        base_cost=base,
        after_personal_income_tax=shown_after_pit,
        personal_income_tax_amount=shown_after_pit - base,
        after_profit=shown_after_profit,
        profit_amount=shown_after_profit - shown_after_pit,
        final_price_vat_inclusive=final_price,
        vat_amount=final_price - shown_after_profit,
        net_price_vat_exclusive=net_price,
        rates=r,
    )
