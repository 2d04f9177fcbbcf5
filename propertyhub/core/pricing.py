from propertyhub.core.models import PriceUnit

JUTA = 1_000_000
MILIAR = 1_000_000_000

# Lower-inclusive upper bounds in rupiah, last band is open-ended
PRICE_BANDS: list[tuple[str, float]] = [
    ("< 500 Juta", 500 * JUTA),
    ("500 Juta - 1 Miliar", 1 * MILIAR),
    ("1 - 2 Miliar", 2 * MILIAR),
    ("2 - 5 Miliar", 5 * MILIAR),
    ("5 - 10 Miliar", 10 * MILIAR),
    ("> 10 Miliar", float("inf")),
]


def to_billions(price: float, unit: PriceUnit | str) -> float:
    """Normalise a price to the miliar scale."""
    if PriceUnit(unit) is PriceUnit.miliar:
        return price
    return price / 1000


def to_rupiah(price: float, unit: PriceUnit | str) -> float:
    if PriceUnit(unit) is PriceUnit.miliar:
        return price * MILIAR
    return price * JUTA


def price_band(rupiah: float) -> str:
    for label, upper in PRICE_BANDS:
        if rupiah < upper:
            return label
    return PRICE_BANDS[-1][0]


def percentage(part: int | float, total: int | float) -> float:
    return round(part / total * 100, 1) if total > 0 else 0.0


def conversion_rate(inquiries: int, views: int) -> float:
    """Inquiries per hundred views, one decimal. Zero views means zero."""
    return percentage(inquiries, views)
