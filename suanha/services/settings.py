"""Build the two independent rate sets from app config and request payloads."""
from typing import Mapping, Optional

from flask import current_app

from suanha.services.pricing import MarkupRates, QuotationRates


def default_quotation_rates(config: Optional[Mapping] = None) -> QuotationRates:
    cfg = config if config is not None else current_app.config
    return QuotationRates(
        margin_rate=cfg.get("QUOTATION_DEFAULT_MARGIN_RATE", 15),
        tax_rate=cfg.get("QUOTATION_DEFAULT_TAX_RATE", 10),
    )


def default_markup_rates(config: Optional[Mapping] = None) -> MarkupRates:
    cfg = config if config is not None else current_app.config
    return MarkupRates(
        personal_income_tax_rate=cfg.get("PRICE_DEFAULT_PIT_RATE", 10),
        profit_rate=cfg.get("PRICE_DEFAULT_PROFIT_RATE", 30),
        vat_rate=cfg.get("PRICE_DEFAULT_VAT_RATE", 8),
    )


def markup_rates_from(data: Mapping, defaults: MarkupRates) -> MarkupRates:
    """Payload keys override defaults; absent or null keys keep the default."""
    def pick(key):
        v = data.get(key)
        return getattr(defaults, key) if v is None else v

    return MarkupRates(
        personal_income_tax_rate=pick("personal_income_tax_rate"),
        profit_rate=pick("profit_rate"),
        vat_rate=pick("vat_rate"),
    )
