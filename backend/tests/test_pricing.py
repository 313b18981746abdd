import random
from datetime import date, datetime

import pytest

from models.promotion import PromotionType
from utils.barcode import (
    COUNTRY_PREFIX, MAX_ATTEMPTS, ean13_check_digit, generate_barcode,
    generate_unique_barcode, is_valid_ean13,
)
from utils.pricing import (
    compute_price_breakdown, composed_purchase_cost, effective_price,
    is_promotion_active, preserve_minimum_price, round_money, suggested_composed_price,
)


def test_breakdown_adds_margin_to_weighted_costs():
    b = compute_price_breakdown(weight=2.5, material_rate=100.0, labor_rate=20.0, margin=50.0)
    assert b.material_cost == pytest.approx(250.0)
    assert b.labor_cost == pytest.approx(50.0)
    assert b.cost_price == pytest.approx(300.0)
    assert b.sale_price == pytest.approx(350.0)


def test_breakdown_is_idempotent():
    args = (3.7, 612.5, 81.25, 199.99)
    assert compute_price_breakdown(*args) == compute_price_breakdown(*args)


def test_zero_weight_means_zero_costs_whatever_the_rates():
    b = compute_price_breakdown(0.0, 650.0, 80.0, 120.0)
    assert b.material_cost == 0
    assert b.labor_cost == 0
    assert b.sale_price == 120.0


def test_breakdown_keeps_full_precision():
    b = compute_price_breakdown(1.333, 3.0, 0.0, 0.0)
    assert b.material_cost == 1.333 * 3.0
    assert round_money(b.material_cost) == 4.0


@pytest.mark.parametrize("prev_sale, prev_min, new_sale, expected", [
    (100.0, 80.0, 150.0, 130.0),
    (100.0, 80.0, 10.0, 0.0),
    (100.0, None, 120.0, 20.0),
    (100.0, 100.0, 90.0, 90.0),
])
def test_minimum_price_keeps_its_distance(prev_sale, prev_min, new_sale, expected):
    assert preserve_minimum_price(prev_sale, prev_min, new_sale) == pytest.approx(expected)


def test_composed_cost_and_suggested_price():
    cost = composed_purchase_cost([(100.0, 2), (50.0, 1)])
    assert cost == 250.0
    assert suggested_composed_price(cost) == 325.0


def test_percentage_promotion():
    assert effective_price(200.0, PromotionType.PERCENTAGE, 25) == pytest.approx(150.0)
    assert effective_price(200.0, "percentage", 0) == pytest.approx(200.0)


def test_fixed_amount_promotion_is_not_floored():
    assert effective_price(50.0, PromotionType.FIXED_AMOUNT, 70.0) == pytest.approx(-20.0)


def test_bundle_promotion_leaves_unit_price():
    assert effective_price(80.0, PromotionType.BUNDLE, 3) == 80.0


def test_unknown_promotion_type():
    with pytest.raises(ValueError):
        effective_price(80.0, "buy_one_get_two", 3)


def test_promotion_window_is_inclusive():
    start, end = date(2024, 3, 1), date(2024, 3, 10)
    assert is_promotion_active(start, end, date(2024, 3, 1))
    assert is_promotion_active(start, end, date(2024, 3, 10))
    assert is_promotion_active(start, end, datetime(2024, 3, 10, 23, 59))
    assert not is_promotion_active(start, end, date(2024, 2, 29))
    assert not is_promotion_active(start, end, date(2024, 3, 11))


def test_check_digit_matches_known_code():
    assert ean13_check_digit("611000000001") == 7
    assert is_valid_ean13("6110000000017")
    assert not is_valid_ean13("6110000000018")
    assert not is_valid_ean13("61100000000")


def test_generated_barcodes_are_valid_ean13():
    rng = random.Random(42)
    for _ in range(50):
        code = generate_barcode(rng)
        assert code.startswith(COUNTRY_PREFIX)
        assert is_valid_ean13(code)


def test_unique_barcode_skips_taken_codes():
    taken = set()
    rng = random.Random(7)
    first = generate_barcode(random.Random(7))
    taken.add(first)
    code = generate_unique_barcode(lambda c: c in taken, rng)
    assert code != first
    assert is_valid_ean13(code)


def test_unique_barcode_gives_up_after_max_attempts():
    calls = []

    def always_taken(code):
        calls.append(code)
        return True

    code = generate_unique_barcode(always_taken, random.Random(1))
    assert len(calls) == MAX_ATTEMPTS
    assert code == calls[-1]
    assert is_valid_ean13(code)
