"""
开盘窗口判断：open/close 两个 session 是否还能下注。

  open  : 当前分钟 <  openTime  且 open 结果未公布
  close : 当前分钟 <= closeTime 且 close 结果未公布（含最后一分钟）

结果依赖墙上时钟，每次轮询都要重新计算。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from matka.core.timeutil import now_local, to_local, minutes_of_day
from matka.schemas.game import PENDING_RESULT
from matka.services.bet_rules import BetType, Session

PENDING_PANNA = "***"
# 时间无法解析的游戏排到最后
_UNPARSABLE_SORT_KEY = 24 * 60

logger = logging.getLogger(__name__)


def time_to_minutes(time_str: Optional[str]) -> Optional[int]:
    """'HH:MM' -> 当天分钟数；空值或格式不对返回 None（该时段按已关闭处理）"""
    try:
        hours, minutes = str(time_str).strip().split(":")[:2]
        return int(hours) * 60 + int(minutes)
    except (TypeError, ValueError):
        logger.warning("unparsable game time: %r", time_str)
        return None


def _current_minutes(now: Optional[datetime]) -> int:
    return minutes_of_day(to_local(now) if now else now_local())


def _field(game: Any, name: str, default=None):
    if isinstance(game, dict):
        return game.get(name, default)
    return getattr(game, name, default)


@dataclass(frozen=True)
class BettingWindow:
    allowed: bool
    message: str

    def __bool__(self) -> bool:
        return self.allowed


def is_betting_allowed(open_time: str, close_time: str, session: str, now: Optional[datetime] = None) -> BettingWindow:
    current = _current_minutes(now)
    if session == Session.OPEN.value:
        limit = time_to_minutes(open_time)
        if limit is not None and current < limit:
            return BettingWindow(True, "Open session betting is available")
        return BettingWindow(False, "Open session betting has closed")
    limit = time_to_minutes(close_time)
    if limit is not None and current <= limit:
        return BettingWindow(True, "Close session betting is available")
    return BettingWindow(False, "Close session betting has closed")


def parse_result(result: Optional[str]) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """'123-45-678' -> ('123', '45', '678')；缺的部分为 None"""
    parts = (result or PENDING_RESULT).split("-")
    parts += [None] * (3 - len(parts))
    return parts[0], parts[1], parts[2]


def _declared(part: Optional[str]) -> bool:
    return bool(part) and part != PENDING_PANNA


@dataclass(frozen=True)
class SessionAvailability:
    open_available: bool
    close_available: bool
    has_open_result: bool
    has_close_result: bool
    market_closed: bool
    current_minutes: int
    close_minutes: int

    @property
    def has_complete_result(self) -> bool:
        return self.has_open_result and self.has_close_result

    @property
    def is_active(self) -> bool:
        return self.open_available or self.close_available

    @property
    def full_sangam_available(self) -> bool:
        return self.open_available and self.close_available

    @property
    def past_close(self) -> bool:
        return self.current_minutes > self.close_minutes

    def as_dict(self) -> dict:
        return {
            "open_available": self.open_available,
            "close_available": self.close_available,
            "has_open_result": self.has_open_result,
            "has_close_result": self.has_close_result,
            "has_complete_result": self.has_complete_result,
            "is_active": self.is_active,
            "market_closed": self.market_closed,
            "full_sangam_available": self.full_sangam_available,
        }


def session_availability(game: Any, now: Optional[datetime] = None) -> SessionAvailability:
    open_result, _, close_result = parse_result(_field(game, "result"))
    has_open = _declared(open_result)
    has_close = _declared(close_result)

    current = _current_minutes(now)
    open_minutes = time_to_minutes(_field(game, "openTime"))
    close_minutes = time_to_minutes(_field(game, "closeTime"))
    if close_minutes is None:
        # 收盘时间不可用 -> 视为已过收盘
        close_minutes = -1

    return SessionAvailability(
        open_available=open_minutes is not None and current < open_minutes and not has_open,
        close_available=current <= close_minutes and not has_close,
        has_open_result=has_open,
        has_close_result=has_close,
        market_closed=current > close_minutes and not (has_open and has_close),
        current_minutes=current,
        close_minutes=close_minutes,
    )


def game_status(game: Any, now: Optional[datetime] = None) -> str:
    sa = session_availability(game, now)
    if sa.past_close:
        return "Market Closed"
    if sa.has_complete_result:
        return "Result Declared"
    if sa.is_active:
        return "Running"
    return "Game Closed"


def can_open_bet_type(game: Any, bet_type, now: Optional[datetime] = None) -> tuple[bool, str]:
    """选择玩法页：至少一个 session 可下注才放行"""
    sa = session_availability(game, now)
    if not sa.is_active:
        if BetType.parse(bet_type) is BetType.FULL_SANGAM:
            return False, "Both sessions are closed!"
        return False, "All sessions are closed!"
    return True, ""


def bet_type_available(game: Any, bet_type, now: Optional[datetime] = None) -> bool:
    """玩法按钮是否可用：full sangam 需两个 session 同时开放"""
    sa = session_availability(game, now)
    if BetType.parse(bet_type) is BetType.FULL_SANGAM:
        return sa.full_sangam_available
    return sa.is_active


def closed_message(game: Any, now: Optional[datetime] = None) -> Optional[str]:
    sa = session_availability(game, now)
    if sa.is_active:
        return None
    if sa.past_close:
        return "Market Closed"
    if sa.has_complete_result:
        return "All results have been declared."
    return "All sessions are currently closed."


def sort_games_by_open_time(games: Iterable[Any]) -> list:
    def key(g):
        minutes = time_to_minutes(_field(g, "openTime"))
        return _UNPARSABLE_SORT_KEY if minutes is None else minutes

    return sorted(games, key=key)


# ------------------------------
# Starline
# ------------------------------
def starline_status(game: Any, now: Optional[datetime] = None) -> dict:
    """优先用服务端 currentStatus，没有时按 openTime 判断（含开奖那一分钟）"""
    server_status = _field(game, "currentStatus")
    if server_status:
        if server_status == "open":
            return {"status": "Open for Betting", "can_bet": True, "is_declared": False}
        return {
            "status": "Market Closed",
            "can_bet": False,
            "is_declared": server_status == "result_declared",
        }
    open_minutes = time_to_minutes(_field(game, "openTime"))
    if open_minutes is not None and _current_minutes(now) <= open_minutes:
        return {"status": "Open for Betting", "can_bet": True, "is_declared": False}
    return {"status": "Market Closed", "can_bet": False, "is_declared": False}
