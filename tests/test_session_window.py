import pytest

from conftest import GAME, at
from matka.schemas.game import StarlineGame
from matka.services.session_window import (
    bet_type_available, can_open_bet_type, closed_message, game_status, is_betting_allowed,
    parse_result, session_availability, sort_games_by_open_time, starline_status, time_to_minutes,
)


def with_result(result):
    return {**GAME, "result": result}


def test_time_to_minutes():
    assert time_to_minutes("10:00") == 600
    assert time_to_minutes("00:05") == 5
    assert time_to_minutes("23:59:00") == 1439


@pytest.mark.parametrize("value", ["", "  ", "10", "ab:cd", None])
def test_time_to_minutes_unparsable(value):
    assert time_to_minutes(value) is None


def test_unparsable_times_count_as_closed():
    assert not is_betting_allowed("", "12:00", "open", at(9, 0)).allowed
    assert not is_betting_allowed("10:00", "xx", "close", at(9, 0)).allowed
    assert is_betting_allowed("", "12:00", "close", at(9, 0)).allowed


def test_availability_with_blank_open_time():
    sa = session_availability({**GAME, "openTime": ""}, at(9, 0))
    assert not sa.open_available
    assert sa.close_available
    assert not sa.full_sangam_available


def test_availability_with_bad_close_time_is_market_closed():
    game = {**GAME, "closeTime": None}
    sa = session_availability(game, at(9, 0))
    assert sa.open_available
    assert not sa.close_available
    assert sa.market_closed
    assert game_status(game, at(9, 0)) == "Market Closed"


def test_open_session_closes_at_open_time():
    assert is_betting_allowed("10:00", "12:00", "open", at(9, 59)).allowed
    w = is_betting_allowed("10:00", "12:00", "open", at(10, 0))
    assert not w.allowed
    assert w.message == "Open session betting has closed"


def test_close_session_includes_last_minute():
    assert is_betting_allowed("10:00", "12:00", "close", at(12, 0)).allowed
    w = is_betting_allowed("10:00", "12:00", "close", at(12, 1))
    assert not w.allowed
    assert w.message == "Close session betting has closed"


def test_parse_result():
    assert parse_result("123-45-678") == ("123", "45", "678")
    assert parse_result("123-4") == ("123", "4", None)
    assert parse_result(None) == ("***", "**", "***")


def test_availability_before_open():
    sa = session_availability(GAME, at(9, 0))
    assert sa.open_available and sa.close_available
    assert sa.full_sangam_available
    assert game_status(GAME, at(9, 0)) == "Running"


def test_open_result_declared_blocks_open_session():
    game = with_result("123-6*-***")
    sa = session_availability(game, at(9, 0))
    assert sa.has_open_result
    assert not sa.open_available
    assert sa.close_available
    assert not sa.full_sangam_available


def test_between_open_and_close():
    sa = session_availability(GAME, at(11, 0))
    assert not sa.open_available
    assert sa.close_available
    assert bet_type_available(GAME, "single", at(11, 0))
    assert not bet_type_available(GAME, "full_sangam", at(11, 0))


def test_after_close_without_results_is_market_closed():
    sa = session_availability(GAME, at(12, 1))
    assert not sa.is_active
    assert sa.market_closed
    assert game_status(GAME, at(12, 1)) == "Market Closed"
    assert closed_message(GAME, at(12, 1)) == "Market Closed"


def test_complete_result_before_close():
    game = with_result("123-69-478")
    assert game_status(game, at(11, 0)) == "Result Declared"
    assert closed_message(game, at(11, 0)) == "All results have been declared."


@pytest.mark.parametrize("bet_type,msg", [
    ("full_sangam", "Both sessions are closed!"),
    ("jodi", "All sessions are closed!"),
])
def test_can_open_bet_type_when_closed(bet_type, msg):
    assert can_open_bet_type(GAME, bet_type, at(13, 0)) == (False, msg)


def test_can_open_bet_type_when_running():
    assert can_open_bet_type(GAME, "jodi", at(9, 0)) == (True, "")


def test_sort_by_open_time():
    games = [{**GAME, "_id": "b", "openTime": "15:30"}, {**GAME, "_id": "a", "openTime": "09:15"}]
    assert [g["_id"] for g in sort_games_by_open_time(games)] == ["a", "b"]


def test_sort_puts_unparsable_open_time_last():
    games = [{**GAME, "_id": "x", "openTime": ""}, {**GAME, "_id": "b", "openTime": "15:30"}]
    assert [g["_id"] for g in sort_games_by_open_time(games)] == ["b", "x"]


def test_starline_status_prefers_server_status():
    g = StarlineGame.model_validate({"_id": "s1", "openTime": "10:00", "currentStatus": "result_declared"})
    assert starline_status(g, at(9, 0)) == {"status": "Market Closed", "can_bet": False, "is_declared": True}


def test_starline_status_falls_back_to_clock():
    g = StarlineGame.model_validate({"_id": "s1", "openTime": "10:00"})
    assert starline_status(g, at(10, 0))["can_bet"]
    assert not starline_status(g, at(10, 1))["can_bet"]


def test_starline_status_with_blank_open_time_is_closed():
    g = StarlineGame.model_validate({"_id": "s1", "openTime": ""})
    assert starline_status(g, at(0, 0))["status"] == "Market Closed"
