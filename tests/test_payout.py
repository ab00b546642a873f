import pytest

from conftest import RATES
from matka.schemas.game import GameRates
from matka.services.payout import (
    compute_rate_metrics, get_payout_range, js_round, payout_for_stake,
    rate_category, rate_table, starline_potential_win,
)


def test_jodi_min_stake_pays_max():
    assert payout_for_stake(10, "jodi", RATES) == 950
    assert get_payout_range("10", "jodi", RATES) == "₹950"


def test_payout_scales_linearly_and_rounds_half_up():
    assert payout_for_stake(100, "single", RATES) == 950
    assert payout_for_stake(15, "single", RATES) == 143
    assert js_round(2.5) == 3
    assert js_round(-2.5) == -2


def test_accepts_pydantic_rates():
    assert payout_for_stake(20, "full_sangam", GameRates.model_validate(RATES)) == 200000


@pytest.mark.parametrize("bet_type", ["half_sangam", "half_sangam_open", "half_sangam_close", "halfSangam"])
def test_half_sangam_variants_share_category(bet_type):
    assert rate_category(bet_type) == "halfSangam"
    assert payout_for_stake(10, bet_type, RATES) == 10000


def test_camel_case_categories():
    assert rate_category("single") == "singleDigit"
    assert rate_category("jodi") == "jodiDigit"
    assert rate_category("single_panna") == "singlePana"
    assert rate_category("doublePanna") == "doublePana"


@pytest.mark.parametrize("amount,bet_type,rates", [
    (0, "jodi", RATES),
    (-10, "jodi", RATES),
    ("", "jodi", RATES),
    ("abc", "jodi", RATES),
    (10, "", RATES),
    (10, "mystery", RATES),
    (10, "jodi", None),
    (10, "jodi", {}),
    (10, "jodi", {"jodiDigit": {"min": 0, "max": 950}}),
    (10, "jodi", {"jodiDigit": {"min": 10, "max": -1}}),
    (10, "jodi", {"jodiDigit": {"min": 10}}),
])
def test_bad_inputs_pay_zero(amount, bet_type, rates):
    assert payout_for_stake(amount, bet_type, rates) == 0


def test_rate_metrics():
    m = compute_rate_metrics(10, 950)
    assert m.multiplier == 95
    assert m.roi_percent == 9400
    assert m.payout_for_stake(20) == 1900
    assert compute_rate_metrics(0, 950).multiplier == 0


def test_rate_table_skips_missing_categories():
    table = rate_table({"singleDigit": {"min": 10, "max": 95}})
    assert table == [{
        "category": "singleDigit",
        "name": "Single Digit",
        "min": 10.0,
        "max": 95.0,
        "multiplier": 9.5,
        "roi_percent": 850.0,
    }]


def test_starline_potential_win_floors():
    assert starline_potential_win(15, 9.5) == 142
    assert starline_potential_win(0, 9.5) == 0
    assert starline_potential_win(10, None) == 0
