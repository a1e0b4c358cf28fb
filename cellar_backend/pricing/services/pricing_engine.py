"""
======================================================
PATH: pricing/services/pricing_engine.py
======================================================
PRICING ENGINE (PURE)

Three calculators share one vocabulary:

- PCO (private client orders)
    supplier → +C&C margin = LDF (landed duty free)
             → +import duty, +transfer cost = DPL (duty paid landed)
             → +distributor margin → +VAT = final (USD, AED)

- B2B
    supplier → +C&C margin = final (USD, AED)

- Pocket Cellar
    supplier → +C&C margin → +logistics (per bottle, by source) = LDF
             → +duty, +transfer = DPL → +distributor margin
             → +sales commission = pre-VAT → +VAT = final

GUARANTEES:
- No database access, no settings access (callers pass variables + rates).
- Margins are applied "on price": price / (1 - pct/100).
- Intermediate values keep full Decimal precision; ONLY outputs are rounded
  to 2dp (half-up). Partner views are derived from the admin result so the
  two can never disagree on totals.
======================================================
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


class PricingError(ValueError):
    pass


TWOPLACES = Decimal("0.01")
HUNDRED = Decimal("100")

SOURCE_CULTX = "cultx"
SOURCE_LOCAL_INVENTORY = "local_inventory"

PRODUCT_SOURCES = {SOURCE_CULTX, SOURCE_LOCAL_INVENTORY}

LOGISTICS_AIR = "air"
LOGISTICS_NONE = "none"


# ============================================================
# DEFAULTS
# ============================================================

MODULE_PCO = "pco"
MODULE_B2B = "b2b"
MODULE_POCKET_CELLAR = "pocket_cellar"

DEFAULT_PCO_VARIABLES = {
    "cc_margin_percent": Decimal("2.5"),
    "import_duty_percent": Decimal("20"),
    "transfer_cost_percent": Decimal("0.75"),
    "distributor_margin_percent": Decimal("7.5"),
    "vat_percent": Decimal("5"),
}

DEFAULT_B2B_VARIABLES = {
    "cc_margin_percent": Decimal("5"),
}

DEFAULT_POCKET_CELLAR_VARIABLES = {
    "cc_margin_percent": Decimal("5"),
    "import_duty_percent": Decimal("20"),
    "transfer_cost_percent": Decimal("0.75"),
    "logistics_air_per_bottle": Decimal("20"),
    "logistics_ocean_per_bottle": Decimal("5"),
    "distributor_margin_percent": Decimal("7.5"),
    "sales_commission_percent": Decimal("2"),
    "vat_percent": Decimal("5"),
}

DEFAULT_VARIABLES = {
    MODULE_PCO: DEFAULT_PCO_VARIABLES,
    MODULE_B2B: DEFAULT_B2B_VARIABLES,
    MODULE_POCKET_CELLAR: DEFAULT_POCKET_CELLAR_VARIABLES,
}

DEFAULT_EXCHANGE_RATES = {
    "gbp_to_usd": Decimal("1.27"),
    "eur_to_usd": Decimal("1.08"),
    "usd_to_aed": Decimal("3.67"),
}


# ============================================================
# HELPERS
# ============================================================

def to_decimal(value, *, field: str = "value") -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise PricingError(f"{field} must be a number") from exc


def round2(value) -> Decimal:
    return to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def apply_margin(price, margin_percent) -> Decimal:
    """
    Margin on selling price: 1000 at 2.5% → 1000 / 0.975 = 1025.64...
    """
    pct = to_decimal(margin_percent, field="margin_percent")
    if pct >= HUNDRED:
        raise PricingError("margin_percent must be below 100")
    return to_decimal(price, field="price") / (1 - pct / HUNDRED)


def _percent_of(amount: Decimal, pct) -> Decimal:
    return amount * (to_decimal(pct) / HUNDRED)


def _merge(defaults: dict, overrides: dict | None) -> dict:
    merged = dict(defaults)
    for key, value in (overrides or {}).items():
        if key in defaults and value is not None:
            merged[key] = to_decimal(value, field=key)
    return merged


def _rates(overrides: dict | None) -> dict:
    return _merge(DEFAULT_EXCHANGE_RATES, overrides)


def _require_non_negative(price: Decimal) -> Decimal:
    if price < 0:
        raise PricingError("supplier price cannot be negative")
    return price


def convert_to_usd(amount, currency: str, exchange_rates: dict | None = None) -> Decimal:
    """
    USD/GBP/EUR → USD at 2dp.
    """
    rates = _rates(exchange_rates)
    value = to_decimal(amount, field="amount")
    cur = (currency or "USD").strip().upper()

    if cur == "USD":
        return round2(value)
    if cur == "GBP":
        return round2(value * rates["gbp_to_usd"])
    if cur == "EUR":
        return round2(value * rates["eur_to_usd"])

    raise PricingError(f"Unsupported currency: {currency}")


# ============================================================
# PCO
# ============================================================

def calculate_pco_admin(
    supplier_price_usd,
    variables: dict | None = None,
    exchange_rates: dict | None = None,
    is_bespoke: bool = False,
) -> dict:
    v = _merge(DEFAULT_PCO_VARIABLES, variables)
    rates = _rates(exchange_rates)
    supplier = _require_non_negative(to_decimal(supplier_price_usd, field="supplier_price_usd"))

    landed_duty_free = apply_margin(supplier, v["cc_margin_percent"])
    cc_margin_amount = landed_duty_free - supplier

    import_duty_amount = _percent_of(landed_duty_free, v["import_duty_percent"])
    transfer_cost_amount = _percent_of(landed_duty_free, v["transfer_cost_percent"])

    duty_paid_landed = landed_duty_free + import_duty_amount + transfer_cost_amount

    after_distributor = apply_margin(duty_paid_landed, v["distributor_margin_percent"])
    distributor_margin_amount = after_distributor - duty_paid_landed

    vat_amount = _percent_of(after_distributor, v["vat_percent"])

    final_price_usd = after_distributor + vat_amount
    final_price_aed = final_price_usd * rates["usd_to_aed"]

    return {
        "supplier_price_usd": round2(supplier),
        "cc_margin_percent": v["cc_margin_percent"],
        "cc_margin_amount": round2(cc_margin_amount),
        "landed_duty_free": round2(landed_duty_free),
        "import_duty_percent": v["import_duty_percent"],
        "import_duty_amount": round2(import_duty_amount),
        "transfer_cost_percent": v["transfer_cost_percent"],
        "transfer_cost_amount": round2(transfer_cost_amount),
        "duty_paid_landed": round2(duty_paid_landed),
        "distributor_margin_percent": v["distributor_margin_percent"],
        "distributor_margin_amount": round2(distributor_margin_amount),
        "after_distributor": round2(after_distributor),
        "vat_percent": v["vat_percent"],
        "vat_amount": round2(vat_amount),
        "final_price_usd": round2(final_price_usd),
        "final_price_aed": round2(final_price_aed),
        "is_bespoke": bool(is_bespoke),
        "usd_to_aed_rate": rates["usd_to_aed"],
    }


def calculate_pco_partner(
    supplier_price_usd,
    variables: dict | None = None,
    exchange_rates: dict | None = None,
) -> dict:
    """
    Consolidated view for partners/distributors: internal margins are hidden.
    """
    admin = calculate_pco_admin(supplier_price_usd, variables, exchange_rates)
    return {
        "subtotal_usd": admin["landed_duty_free"],
        "duty_usd": admin["import_duty_amount"],
        "logistics_usd": admin["transfer_cost_amount"],
        "vat_usd": admin["vat_amount"],
        "total_usd": admin["final_price_usd"],
        "total_aed": admin["final_price_aed"],
    }


# ============================================================
# B2B
# ============================================================

def calculate_b2b_admin(
    supplier_price_usd,
    variables: dict | None = None,
    exchange_rates: dict | None = None,
) -> dict:
    v = _merge(DEFAULT_B2B_VARIABLES, variables)
    rates = _rates(exchange_rates)
    supplier = _require_non_negative(to_decimal(supplier_price_usd, field="supplier_price_usd"))

    final_price_usd = apply_margin(supplier, v["cc_margin_percent"])

    return {
        "supplier_price_usd": round2(supplier),
        "cc_margin_percent": v["cc_margin_percent"],
        "cc_margin_amount": round2(final_price_usd - supplier),
        "final_price_usd": round2(final_price_usd),
        "final_price_aed": round2(final_price_usd * rates["usd_to_aed"]),
        "usd_to_aed_rate": rates["usd_to_aed"],
    }


# ============================================================
# POCKET CELLAR
# ============================================================

def get_logistics_info(product_source: str, variables: dict | None = None) -> tuple[str, Decimal]:
    v = _merge(DEFAULT_POCKET_CELLAR_VARIABLES, variables)
    if product_source == SOURCE_CULTX:
        return LOGISTICS_AIR, v["logistics_air_per_bottle"]
    return LOGISTICS_NONE, Decimal("0")


def calculate_pocket_cellar_admin(
    supplier_price_usd,
    product_source: str,
    bottle_count: int = 1,
    variables: dict | None = None,
    exchange_rates: dict | None = None,
) -> dict:
    if product_source not in PRODUCT_SOURCES:
        raise PricingError(f"Unknown product source: {product_source}")
    if int(bottle_count) < 1:
        raise PricingError("bottle_count must be at least 1")

    v = _merge(DEFAULT_POCKET_CELLAR_VARIABLES, variables)
    rates = _rates(exchange_rates)
    supplier = _require_non_negative(to_decimal(supplier_price_usd, field="supplier_price_usd"))

    after_cc_margin = apply_margin(supplier, v["cc_margin_percent"])

    logistics_type, logistics_per_bottle = get_logistics_info(product_source, v)
    logistics_amount = logistics_per_bottle * int(bottle_count)
    landed_duty_free = after_cc_margin + logistics_amount

    import_duty_amount = _percent_of(landed_duty_free, v["import_duty_percent"])
    transfer_cost_amount = _percent_of(landed_duty_free, v["transfer_cost_percent"])
    duty_paid_landed = landed_duty_free + import_duty_amount + transfer_cost_amount

    after_distributor = apply_margin(duty_paid_landed, v["distributor_margin_percent"])

    sales_commission_amount = _percent_of(after_distributor, v["sales_commission_percent"])
    pre_vat = after_distributor + sales_commission_amount

    vat_amount = _percent_of(pre_vat, v["vat_percent"])
    final_price_usd = pre_vat + vat_amount

    return {
        "supplier_price_usd": round2(supplier),
        "product_source": product_source,
        "cc_margin_percent": v["cc_margin_percent"],
        "cc_margin_amount": round2(after_cc_margin - supplier),
        "after_cc_margin": round2(after_cc_margin),
        "logistics_type": logistics_type,
        "logistics_per_bottle": logistics_per_bottle,
        "logistics_amount": round2(logistics_amount),
        "landed_duty_free": round2(landed_duty_free),
        "import_duty_percent": v["import_duty_percent"],
        "import_duty_amount": round2(import_duty_amount),
        "transfer_cost_percent": v["transfer_cost_percent"],
        "transfer_cost_amount": round2(transfer_cost_amount),
        "duty_paid_landed": round2(duty_paid_landed),
        "distributor_margin_percent": v["distributor_margin_percent"],
        "distributor_margin_amount": round2(after_distributor - duty_paid_landed),
        "after_distributor": round2(after_distributor),
        "sales_commission_percent": v["sales_commission_percent"],
        "sales_commission_amount": round2(sales_commission_amount),
        "pre_vat": round2(pre_vat),
        "vat_percent": v["vat_percent"],
        "vat_amount": round2(vat_amount),
        "final_price_usd": round2(final_price_usd),
        "final_price_aed": round2(final_price_usd * rates["usd_to_aed"]),
        "usd_to_aed_rate": rates["usd_to_aed"],
    }


def calculate_pocket_cellar_partner(
    supplier_price_usd,
    product_source: str,
    bottle_count: int = 1,
    variables: dict | None = None,
    exchange_rates: dict | None = None,
) -> dict:
    admin = calculate_pocket_cellar_admin(
        supplier_price_usd,
        product_source,
        bottle_count,
        variables,
        exchange_rates,
    )
    return {
        "subtotal_usd": admin["landed_duty_free"],
        "duty_usd": admin["import_duty_amount"],
        "logistics_usd": admin["transfer_cost_amount"] + admin["logistics_amount"],
        "vat_usd": admin["vat_amount"],
        "total_usd": admin["final_price_usd"],
        "total_aed": admin["final_price_aed"],
    }
