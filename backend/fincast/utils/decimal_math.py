from decimal import Decimal, ROUND_HALF_UP


MONEY_QUANT = Decimal("0.01")
PCT_QUANT = Decimal("0.01")

Number = Decimal | int | float | str


def money(value: Number) -> Decimal:
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def pct(value: Number) -> Decimal:
    return Decimal(str(value)).quantize(PCT_QUANT, rounding=ROUND_HALF_UP)


def safe_pct(numerator: Number, denominator: Number) -> float:
    """Percentage of ``numerator`` over ``denominator``; 0 when the denominator is 0."""
    if Decimal(str(denominator)) == 0:
        return 0.0
    return float(Decimal(str(numerator)) / Decimal(str(denominator)) * Decimal("100"))


def format_money(value: Number, currency: str) -> str:
    return f"{currency} {money(value):,.2f}"
