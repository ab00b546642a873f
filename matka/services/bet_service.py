from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from matka.core.config import settings
from matka.schemas.bet import BetPayload, BetSummary
from matka.schemas.game import Game, GameRates
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.bet_rules import (
    BetType,
    Session,
    current_game_date,
    format_amount,
    format_bet_number,
    parse_amount,
    reformat_bet_number,
    session_display_name,
    validate_bet_amount,
    validate_bet_number,
)
from matka.services.payout import get_payout_range
from matka.services.session_window import is_betting_allowed, session_availability

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"


@dataclass
class SubmitOutcome:
    ok: bool
    errors: dict[str, str] = field(default_factory=dict)
    notifications: list[str] = field(default_factory=list)
    new_balance: Optional[float] = None
    redirect_to: Optional[str] = None
    redirect_after: Optional[float] = None
    payload: Optional[BetPayload] = None


class BettingForm:
    """
    下注表单：
      idle -> validating -> (有错误: idle) | (通过: submitting) -> idle
    校验不过时绝不发请求；失败不自动重试，由用户重新提交。
    """

    def __init__(
        self,
        bet_type,
        *,
        balance: float = 0,
        game_rates: GameRates | dict | None = None,
        min_bet: Optional[float] = None,
        max_bet: Optional[float] = None,
    ):
        bt = BetType.parse(bet_type)
        if bt is None or bt in (BetType.HALF_SANGAM_OPEN, BetType.HALF_SANGAM_CLOSE):
            raise ValueError(f"unsupported bet type for betting form: {bet_type!r}")
        self.bet_type = bt
        self.balance = float(balance or 0)
        self.game_rates = game_rates
        self.min_bet = settings.BET_MIN_AMOUNT if min_bet is None else min_bet
        self.max_bet = settings.BET_MAX_AMOUNT if max_bet is None else max_bet

        self.games: list[Game] = []
        self.selected_game: Optional[Game] = None
        self.session: str = Session.OPEN.value
        self.bet_number: str = ""
        self.bet_amount: Any = ""

        self.errors: dict[str, str] = {}
        self.state = FormState.IDLE
        self.submitting = False

    # ------------------------------
    # 表单输入
    # ------------------------------
    def select_game(self, games: Iterable[Any], game_id: Optional[str] = None) -> Optional[Game]:
        """按 game_id 预选，找不到或没给就选第一个"""
        self.games = [g if isinstance(g, Game) else Game.model_validate(g) for g in games]
        self.selected_game = None
        if not self.games:
            return None
        if game_id:
            self.selected_game = next((g for g in self.games if g.id == game_id), None)
        if self.selected_game is None:
            self.selected_game = self.games[0]
        return self.selected_game

    def fill(self, *, session: Optional[str] = None, bet_number: Optional[str] = None, bet_amount: Any = None) -> None:
        if session is not None:
            self.session = session
        if bet_number is not None:
            self.bet_number = bet_number
        if bet_amount is not None:
            self.bet_amount = bet_amount

    def reset_inputs(self) -> None:
        self.bet_number = ""
        self.bet_amount = ""
        self.errors = {}

    # ------------------------------
    # 校验
    # ------------------------------
    def validation_input(self) -> tuple[BetType, str]:
        number = reformat_bet_number(self.bet_type, self.bet_number)
        return self.bet_type.for_session(self.session), number

    def _timing_error(self, now: Optional[datetime]) -> Optional[str]:
        game = self.selected_game
        if self.bet_type is BetType.FULL_SANGAM:
            # 不选 session，要求 open/close 同时开放
            if not session_availability(game, now).full_sangam_available:
                return "Full Sangam requires both sessions to be open"
            return None

        window = is_betting_allowed(game.openTime, game.closeTime, self.session, now)
        if not window.allowed:
            return window.message
        sa = session_availability(game, now)
        declared = sa.has_open_result if self.session == Session.OPEN.value else sa.has_close_result
        if declared:
            return f"{session_display_name(self.session)} session result has already been declared"
        return None

    def validate(self, now: Optional[datetime] = None) -> dict[str, str]:
        errors: dict[str, str] = {}

        if self.selected_game is None:
            errors["game"] = "Please select a game"

        vtype, vnumber = self.validation_input()
        number_check = validate_bet_number(vtype, vnumber)
        if not number_check.valid:
            errors["number"] = number_check.message

        amount_check = validate_bet_amount(self.bet_amount, self.min_bet, self.max_bet, self.balance)
        if not amount_check.valid:
            errors["amount"] = amount_check.message

        session_ok = not self.bet_type.uses_session or self.session in (Session.OPEN.value, Session.CLOSE.value)
        if not session_ok:
            errors["session"] = "Please select a session"

        if self.selected_game is not None and session_ok:
            timing = self._timing_error(now)
            if timing:
                errors["timing"] = timing

        self.errors = errors
        return errors

    def build_payload(self, now: Optional[datetime] = None) -> BetPayload:
        return BetPayload(
            gameId=self.selected_game.id,
            betType=self.bet_type.backend_name,
            session=None if self.bet_type is BetType.FULL_SANGAM else self.session,
            betNumber=reformat_bet_number(self.bet_type, self.bet_number),
            betAmount=parse_amount(self.bet_amount),
            gameDate=current_game_date(now),
        )

    # ------------------------------
    # 提交
    # ------------------------------
    async def submit(self, api: MatkaApiClient, now: Optional[datetime] = None) -> SubmitOutcome:
        if self.submitting:
            return SubmitOutcome(ok=False, notifications=["Bet submission already in progress"])

        self.state = FormState.VALIDATING
        errors = self.validate(now)
        if errors:
            self.state = FormState.IDLE
            return SubmitOutcome(ok=False, errors=errors)

        payload = self.build_payload(now)
        self.state = FormState.SUBMITTING
        self.submitting = True
        try:
            resp = await api.place_bet(payload.model_dump())
        except ApiError as e:
            logger.warning("place bet failed: %s (%s)", e.message, e.status_code)
            return SubmitOutcome(ok=False, notifications=e.notifications(), payload=payload)
        finally:
            self.submitting = False
            self.state = FormState.IDLE

        notifications = ["Bet placed successfully!"]
        new_balance = resp.get("newBalance") if isinstance(resp, dict) else None
        if new_balance is not None:
            self.balance = float(new_balance)
            notifications.append(f"New balance: ₹{format_amount(new_balance)}")

        self.reset_inputs()
        return SubmitOutcome(
            ok=True,
            notifications=notifications,
            new_balance=self.balance if new_balance is not None else None,
            redirect_to="/dashboard",
            redirect_after=settings.BET_REDIRECT_DELAY_SECONDS,
            payload=payload,
        )

    # ------------------------------
    # 展示
    # ------------------------------
    def potential_win(self) -> str:
        if not self.bet_amount or not self.game_rates or self.selected_game is None:
            return "₹0"
        # 用前端玩法名算，不用映射后的后端名
        return get_payout_range(self.bet_amount, self.bet_type, self.game_rates)

    def summary(self) -> Optional[BetSummary]:
        if self.selected_game is None or not self.bet_number:
            return None
        return BetSummary(
            game=self.selected_game.gameName,
            session=session_display_name(self.session) if self.bet_type.uses_session else None,
            bet=format_bet_number(self.bet_type.for_session(self.session), self.bet_number),
            amount=f"₹{self.bet_amount}" if self.bet_amount not in ("", None) else None,
        )
