from itertools import permutations

import pytest

from conftest import at
from matka.services.bet_rules import (
    BetType, PannaClass, classify_panna, current_game_date, format_amount, format_bet_number,
    parse_amount, reformat_bet_number, validate_bet_amount, validate_bet_number,
)

ALL_PANNAS = [f"{n:03d}" for n in range(1000)]


def test_panna_classes_partition_all_three_digit_strings():
    counts = {c: 0 for c in PannaClass}
    for p in ALL_PANNAS:
        counts[classify_panna(p)] += 1
    assert counts[PannaClass.TRIPLE] == 10
    assert counts[PannaClass.DOUBLE] == 270
    assert counts[PannaClass.SINGLE] == 720


@pytest.mark.parametrize("panna", ["123", "112", "555", "909", "370"])
def test_panna_class_is_order_independent(panna):
    classes = {classify_panna("".join(p)) for p in permutations(panna)}
    assert len(classes) == 1


def test_panna_validators_accept_exactly_their_class():
    for p in ALL_PANNAS:
        actual = classify_panna(p)
        for bt in (BetType.SINGLE_PANNA, BetType.DOUBLE_PANNA, BetType.TRIPLE_PANNA):
            assert validate_bet_number(bt, p).valid == (bt.panna_class is actual)


def test_panna_mismatch_message():
    r = validate_bet_number("single_panna", "112")
    assert not r.valid
    assert r.message == "This is a double panna, but you selected single panna"


@pytest.mark.parametrize("bet_type,number,ok", [
    ("single", "7", True),
    ("single", "0", True),
    ("single", "10", False),
    ("single", "a", False),
    ("single", "", False),
    ("jodi", "05", True),
    ("jodi", "5", False),
    ("jodi", "123", False),
    ("half_sangam_open", "5-123", True),
    ("half_sangam_close", "0-999", True),
    ("half_sangam_open", "5123", False),
    ("half_sangam_open", "53-123", False),
    ("half_sangam_open", "5-12", False),
    ("full_sangam", "123-456", True),
    ("full_sangam", "123456", False),
    ("full_sangam", "12-3456", False),
    ("full_sangam", "123-456-789", False),
])
def test_validate_bet_number(bet_type, number, ok):
    assert validate_bet_number(bet_type, number).valid is ok


def test_validation_messages():
    assert validate_bet_number("single", "x").message == "Single digit must be a number between 0-9"
    assert validate_bet_number("jodi", "1").message == "Jodi must be a 2-digit number"
    assert validate_bet_number("triple_panna", "12").message == "Panna must be a 3-digit number"
    assert validate_bet_number("half_sangam_open", "1").message == "Half sangam format: digit-panna (e.g., 5-123)"
    assert validate_bet_number("full_sangam", "1").message == "Full sangam format: panna-panna (e.g., 123-456)"


def test_non_ascii_digits_rejected():
    assert not validate_bet_number("single", "٣").valid


def test_unqualified_half_sangam_and_unknown_types():
    assert validate_bet_number("half_sangam", "5-123").message == "Unknown bet type"
    assert validate_bet_number("nope", "1").message == "Unknown bet type"


def test_bet_type_parse_accepts_backend_names():
    assert BetType.parse("singlePanna") is BetType.SINGLE_PANNA
    assert BetType.parse("fullSangam") is BetType.FULL_SANGAM
    assert BetType.parse("halfSangam") is BetType.HALF_SANGAM
    assert BetType.parse("bogus") is None


def test_half_sangam_for_session():
    assert BetType.HALF_SANGAM.for_session("open") is BetType.HALF_SANGAM_OPEN
    assert BetType.HALF_SANGAM.for_session("close") is BetType.HALF_SANGAM_CLOSE
    assert BetType.JODI.for_session("close") is BetType.JODI


def test_backend_names():
    assert BetType.SINGLE.backend_name == "single"
    assert BetType.TRIPLE_PANNA.backend_name == "triplePanna"
    assert BetType.HALF_SANGAM_CLOSE.backend_name == "halfSangam"


def test_reformat_full_sangam():
    assert reformat_bet_number("full_sangam", "123456") == "123-456"
    assert reformat_bet_number("full_sangam", "123-456") == "123-456"
    assert reformat_bet_number("jodi", "123456") == "123456"
    assert validate_bet_number("full_sangam", reformat_bet_number("full_sangam", "123456")).valid


@pytest.mark.parametrize("bet_type,number,shown", [
    ("single", "7", "7 (Single Digit)"),
    ("jodi", "45", "45 (Jodi)"),
    ("double_panna", "112", "112 (Double Panna)"),
    ("half_sangam_open", "5-123", "5-123 (Half Sangam - Open)"),
    ("half_sangam_close", "5-123", "5-123 (Half Sangam - Close)"),
    ("full_sangam", "123-456", "123-456 (Full Sangam)"),
    ("half_sangam", "5-123", "5-123"),
    ("bogus", "9", "9"),
])
def test_format_bet_number(bet_type, number, shown):
    assert format_bet_number(bet_type, number) == shown


@pytest.mark.parametrize("amount,msg", [
    ("", "Please enter a valid bet amount"),
    ("abc", "Please enter a valid bet amount"),
    (0, "Please enter a valid bet amount"),
    (-5, "Please enter a valid bet amount"),
    (9, "Minimum bet amount is ₹10"),
    (10001, "Maximum bet amount is ₹10000"),
    (600, "Insufficient balance"),
])
def test_validate_bet_amount_errors(amount, msg):
    r = validate_bet_amount(amount, 10, 10000, 500)
    assert not r.valid
    assert r.message == msg


def test_validate_bet_amount_ok_and_boundaries():
    assert validate_bet_amount("10", 10, 10000, 500).valid
    assert validate_bet_amount(500, 10, 10000, 500).valid
    assert validate_bet_amount("50abc", 10, 10000, 500).valid


def test_parse_amount():
    assert parse_amount("12.5x") == 12.5
    assert parse_amount(" 7") == 7
    assert parse_amount("x7") is None
    assert parse_amount(True) is None
    assert format_amount(10.0) == "10"
    assert format_amount(10.5) == "10.5"


def test_current_game_date_is_local_midnight_in_utc():
    # IST = UTC+5:30，本地零点是前一天 18:30Z
    assert current_game_date(at(9, 0)) == "2024-05-14T18:30:00.000Z"
    assert current_game_date(at(23, 59)) == "2024-05-14T18:30:00.000Z"
