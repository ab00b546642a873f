from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Iterable, Optional

from matka.schemas.game import StarlineGame
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.bet_rules import ValidationResult, format_amount, parse_amount
from matka.services.payout import starline_potential_win
from matka.services.session_window import sort_games_by_open_time, starline_status

logger = logging.getLogger(__name__)

STARLINE_BET_TYPES = ("single digit", "single pana", "double pana", "triple pana")
# 费率表字段名
_RATE_KEYS = {
    "single digit": "singleDigit",
    "single pana": "singlePana",
    "double pana": "doublePana",
    "triple pana": "triplePana",
}
_DIGIT = re.compile(r"[0-9]")
_PANA = re.compile(r"[0-9]{3}")


def transform_rates(raw: dict) -> dict:
    """服务端 {singleDigit: {min, max}} -> {'single digit': {multiplier, minBetAmount, maxBetAmount}}"""
    out = {}
    for bet_type, key in _RATE_KEYS.items():
        band = (raw or {}).get(key)
        if not isinstance(band, dict) or band.get("max") is None:
            continue
        out[bet_type] = {
            "multiplier": float(band["max"]) / 10,
            "minBetAmount": band.get("min"),
            "maxBetAmount": band.get("max"),
        }
    return out


def active_games(games: Iterable[Any]) -> list[StarlineGame]:
    parsed = [g if isinstance(g, StarlineGame) else StarlineGame.model_validate(g) for g in games]
    return sort_games_by_open_time([g for g in parsed if g.isActive])


def validate_starline_bet(
    game: StarlineGame,
    bet_type: str,
    bet_number: str,
    bet_amount,
    balance: float,
    now: Optional[datetime] = None,
) -> ValidationResult:
    if not starline_status(game, now)["can_bet"]:
        return ValidationResult(False, "Betting is not available for this game right now")
    if bet_type not in STARLINE_BET_TYPES:
        return ValidationResult(False, "Invalid bet type")
    pattern = _DIGIT if bet_type == "single digit" else _PANA
    if not pattern.fullmatch(bet_number or ""):
        return ValidationResult(False, "Please enter a valid bet number")
    amount = parse_amount(bet_amount)
    if not amount or amount < game.minBet:
        return ValidationResult(False, f"Minimum bet amount is ₹{format_amount(game.minBet)}")
    if amount > game.maxBet:
        return ValidationResult(False, f"Maximum bet amount is ₹{format_amount(game.maxBet)}")
    if amount > (balance or 0):
        return ValidationResult(False, "Insufficient balance")
    return ValidationResult(True, "")


def potential_win(bet_type: str, bet_amount, rates: dict) -> int:
    rate = (rates or {}).get(bet_type)
    if not rate:
        return 0
    return starline_potential_win(bet_amount, rate.get("multiplier"))


async def place_starline_bet(
    api: MatkaApiClient,
    game: StarlineGame,
    bet_type: str,
    bet_number: str,
    bet_amount,
    balance: float,
    now: Optional[datetime] = None,
) -> dict:
    check = validate_starline_bet(game, bet_type, bet_number, bet_amount, balance, now)
    if not check.valid:
        return {"ok": False, "message": check.message}
    payload = {
        "gameId": game.id,
        "betType": bet_type,
        "betNumber": bet_number,
        "betAmount": int(parse_amount(bet_amount)),
    }
    try:
        resp = await api.place_starline_bet(payload)
    except ApiError as e:
        logger.warning("starline bet failed: %s", e.message)
        return {"ok": False, "message": e.message}
    data = resp.get("data") or {}
    return {
        "ok": bool(resp.get("success")),
        "message": "Bet placed successfully!" if resp.get("success") else (resp.get("message") or "Failed to place bet"),
        "remaining_balance": data.get("remainingBalance"),
    }
