import pytest

from propertyhub.core.models import PriceUnit
from propertyhub.core.pricing import conversion_rate, percentage, price_band, to_billions, to_rupiah


@pytest.mark.parametrize("price", [0.5, 1, 2.75, 12])
def test_miliar_is_identity_on_billion_scale(price):
    assert to_billions(price, PriceUnit.miliar) == price


@pytest.mark.parametrize("price, expected", [(500, 0.5), (1500, 1.5), (750, 0.75)])
def test_juta_divides_by_thousand(price, expected):
    assert to_billions(price, "juta") == pytest.approx(expected)


def test_to_rupiah_scale_factors():
    assert to_rupiah(1, PriceUnit.juta) == 1_000_000
    assert to_rupiah(1, PriceUnit.miliar) == 1_000_000_000


def test_band_lower_boundary_is_inclusive():
    assert price_band(to_rupiah(500, PriceUnit.juta)) == "500 Juta - 1 Miliar"
    assert price_band(500_000_000) == "500 Juta - 1 Miliar"
    assert price_band(499_999_999) == "< 500 Juta"


@pytest.mark.parametrize(
    "price, unit, band",
    [
        (100, "juta", "< 500 Juta"),
        (1, "miliar", "1 - 2 Miliar"),
        (1999, "juta", "1 - 2 Miliar"),
        (2, "miliar", "2 - 5 Miliar"),
        (5, "miliar", "5 - 10 Miliar"),
        (10, "miliar", "> 10 Miliar"),
        (250, "miliar", "> 10 Miliar"),
    ],
)
def test_price_bands(price, unit, band):
    assert price_band(to_rupiah(price, unit)) == band


def test_conversion_rate():
    assert conversion_rate(57, 1000) == 5.7
    assert conversion_rate(3, 0) == 0
    assert conversion_rate(1, 3) == 33.3


def test_percentage_of_empty_total():
    assert percentage(0, 0) == 0.0
