import pytest

from conftest import GAME, RATES, FakeUpstream, at
from matka.services.bet_service import BettingForm, FormState


def make_form(bet_type="jodi", balance=500):
    form = BettingForm(bet_type, balance=balance, game_rates=RATES)
    form.select_game([GAME], "g1")
    return form


async def test_successful_jodi_bet(api, upstream):
    upstream.set("POST", "/bets", {"message": "ok", "newBalance": 400})
    form = make_form()
    form.fill(session="open", bet_number="45", bet_amount="100")

    outcome = await form.submit(api, now=at(9, 0))

    assert outcome.ok
    assert outcome.notifications == ["Bet placed successfully!", "New balance: ₹400"]
    assert outcome.new_balance == 400
    assert outcome.redirect_to == "/dashboard"
    assert outcome.redirect_after == 1.5

    (call,) = upstream.calls_to("POST", "/bets")
    assert call.headers["Authorization"] == "Bearer tok-123"
    assert FakeUpstream.body(call) == {
        "gameId": "g1",
        "betType": "jodi",
        "session": "open",
        "betNumber": "45",
        "betAmount": 100.0,
        "gameDate": "2024-05-14T18:30:00.000Z",
    }
    # 成功后清空输入
    assert form.bet_number == "" and form.bet_amount == ""
    assert form.state is FormState.IDLE


async def test_validation_errors_do_not_hit_network(api, upstream):
    form = make_form()
    form.fill(session="open", bet_number="4", bet_amount="5")

    outcome = await form.submit(api, now=at(9, 0))

    assert not outcome.ok
    assert outcome.errors == {
        "number": "Jodi must be a 2-digit number",
        "amount": "Minimum bet amount is ₹10",
    }
    assert upstream.calls_to("POST", "/bets") == []


async def test_closed_session_is_timing_error(api, upstream):
    form = make_form()
    form.fill(session="open", bet_number="45", bet_amount="100")

    outcome = await form.submit(api, now=at(10, 0))

    assert outcome.errors == {"timing": "Open session betting has closed"}
    assert upstream.calls_to("POST", "/bets") == []


def test_declared_result_blocks_session():
    form = BettingForm("single", balance=500)
    form.select_game([{**GAME, "result": "123-6*-***"}], "g1")
    form.fill(session="open", bet_number="6", bet_amount="50")

    errors = form.validate(now=at(9, 0))

    assert errors == {"timing": "Open session result has already been declared"}


async def test_upstream_field_errors_become_notifications(api, upstream):
    upstream.set("POST", "/bets", {"message": "Validation failed", "errors": [
        {"msg": "Invalid bet number"}, {"msg": "Game closed"},
    ]}, status=400)
    form = make_form()
    form.fill(session="close", bet_number="45", bet_amount="100")

    outcome = await form.submit(api, now=at(11, 0))

    assert not outcome.ok
    assert outcome.notifications == ["Invalid bet number", "Game closed"]
    # 失败不清空输入，也不重试
    assert form.bet_number == "45"
    assert len(upstream.calls_to("POST", "/bets")) == 1


async def test_upstream_message_without_field_errors(api, upstream):
    upstream.set("POST", "/bets", {"message": "Insufficient balance"}, status=400)
    form = make_form()
    form.fill(session="open", bet_number="45", bet_amount="100")

    outcome = await form.submit(api, now=at(9, 0))

    assert outcome.notifications == ["Insufficient balance"]


async def test_full_sangam_sends_null_session_and_reformats(api, upstream):
    upstream.set("POST", "/bets", {"newBalance": 490})
    form = make_form("full_sangam")
    form.fill(bet_number="123456", bet_amount="10")

    outcome = await form.submit(api, now=at(9, 0))

    assert outcome.ok
    body = FakeUpstream.body(upstream.calls_to("POST", "/bets")[0])
    assert body["session"] is None
    assert body["betType"] == "fullSangam"
    assert body["betNumber"] == "123-456"


def test_full_sangam_needs_both_sessions():
    form = make_form("full_sangam")
    form.fill(bet_number="123-456", bet_amount="10")
    assert form.validate(now=at(11, 0)) == {"timing": "Full Sangam requires both sessions to be open"}


async def test_half_sangam_validates_against_selected_session(api, upstream):
    upstream.set("POST", "/bets", {})
    form = make_form("half_sangam")
    form.fill(session="close", bet_number="5-123", bet_amount="10")

    outcome = await form.submit(api, now=at(9, 0))

    assert outcome.ok
    assert outcome.notifications == ["Bet placed successfully!"]
    body = FakeUpstream.body(upstream.calls_to("POST", "/bets")[0])
    assert body["betType"] == "halfSangam"
    assert body["session"] == "close"


async def test_submission_guard(api, upstream):
    form = make_form()
    form.fill(session="open", bet_number="45", bet_amount="100")
    form.submitting = True

    outcome = await form.submit(api, now=at(9, 0))

    assert outcome.notifications == ["Bet submission already in progress"]
    assert upstream.calls_to("POST", "/bets") == []


def test_unknown_bet_type_rejected():
    with pytest.raises(ValueError):
        BettingForm("half_sangam_open")
    with pytest.raises(ValueError):
        BettingForm("lucky_seven")


def test_select_game_falls_back_to_first():
    form = BettingForm("single")
    other = {**GAME, "_id": "g2", "gameName": "MILAN"}
    assert form.select_game([GAME, other], "missing").id == "g1"
    assert form.select_game([GAME, other], "g2").gameName == "MILAN"
    assert form.select_game([], "g2") is None


def test_preview_and_summary():
    form = make_form()
    form.fill(session="open", bet_number="45", bet_amount="10")
    assert form.potential_win() == "₹950"
    summary = form.summary()
    assert summary.game == "KALYAN"
    assert summary.session == "Open"
    assert summary.bet == "45 (Jodi)"
    assert summary.amount == "₹10"


def test_half_sangam_summary_names_the_session():
    form = make_form("half_sangam")
    form.fill(session="close", bet_number="5-123", bet_amount="10")
    assert form.summary().bet == "5-123 (Half Sangam - Close)"


async def test_unknown_session_is_rejected(api, upstream):
    form = make_form()
    form.fill(session="evening", bet_number="45", bet_amount="100")

    outcome = await form.submit(api, now=at(11, 30))

    assert outcome.errors == {"session": "Please select a session"}
    assert upstream.calls_to("POST", "/bets") == []


async def test_afternoon_single_digit_scenario(api, upstream):
    upstream.set("POST", "/bets", {"newBalance": 950})
    game = {**GAME, "_id": "g9", "gameName": "MAIN BAZAR", "openTime": "15:00", "closeTime": "17:00"}
    form = BettingForm("single", balance=1000, game_rates=RATES)
    form.select_game([game], "g9")
    form.fill(session="open", bet_number="7", bet_amount=50)

    outcome = await form.submit(api, now=at(14, 0))

    assert outcome.ok
    body = FakeUpstream.body(upstream.calls_to("POST", "/bets")[0])
    assert (body["gameId"], body["betType"], body["session"], body["betNumber"], body["betAmount"]) == (
        "g9", "single", "open", "7", 50,
    )
