"""下注历史 / 中奖历史：纯展示层的筛选、排序、分页；另有单个游戏的结果走势。"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Iterable, Optional

from matka.core.timeutil import now_local, parse_api_datetime, to_local
from matka.schemas.bet import BetHistoryFilters, BetHistoryItem
from matka.schemas.game import ChartRow, SessionResult
from matka.services.bet_rules import BACKEND_DISPLAY_NAMES

DATE_FIELDS = ("betDate", "createdAt", "resultDate")

logger = logging.getLogger(__name__)


def _same_day(a: Optional[datetime], b: Optional[datetime]) -> bool:
    return a is not None and b is not None and a.date() == b.date()


def _month_back(now: datetime) -> datetime:
    year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
    # 月底溢出时取上月最后一天
    for day in range(now.day, 27, -1):
        try:
            return now.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return now.replace(year=year, month=month, day=min(now.day, 28))


def _find_session_result(results: list[dict], game_id, bet_day: datetime, session: Optional[str]) -> Optional[dict]:
    for r in results:
        if r.get("gameId") != game_id or r.get("session") != session:
            continue
        if _same_day(parse_api_datetime(r.get("gameDate")), bet_day):
            return r
    return None


def result_for_bet(bet: dict, session_results: list[dict]) -> Optional[str]:
    """
    取下注对应的开奖结果：
      - bet 自带 result 且不含 'undefined' 直接用
      - jodi:            open_pana-open_digit-close_pana-close_digit
      - half/full sangam: open_pana-open_digit/close_pana-close_digit（缺一边用 Pending）
      - 其他按 bet.session 取 pana-digit
    """
    stored = bet.get("result")
    if stored and "undefined" not in str(stored):
        return stored

    bet_day = parse_api_datetime(bet.get("betDate"))
    if bet_day is None:
        return None
    game_id = bet.get("gameId")
    bet_type = bet.get("betType")

    if bet_type in ("fullSangam", "halfSangam", "jodi"):
        o = _find_session_result(session_results, game_id, bet_day, "open")
        c = _find_session_result(session_results, game_id, bet_day, "close")
        if o and c:
            if bet_type == "jodi":
                return f"{o.get('pana')}-{o.get('digit')}-{c.get('pana')}-{c.get('digit')}"
            return f"{o.get('pana')}-{o.get('digit')}/{c.get('pana')}-{c.get('digit')}"
        if o:
            return f"{o.get('pana')}-{o.get('digit')}/Pending"
        if c:
            return f"Pending/{c.get('pana')}-{c.get('digit')}"
        return None

    r = _find_session_result(session_results, game_id, bet_day, bet.get("session"))
    if r:
        return f"{r.get('pana')}-{r.get('digit')}"
    return None


def _bet_time(bet: dict) -> Optional[datetime]:
    return parse_api_datetime(bet.get("betDate"))


def apply_filters(bets: Iterable[dict], filters: BetHistoryFilters, now: Optional[datetime] = None) -> list[dict]:
    out = list(bets)
    now = to_local(now) if now else now_local()

    if filters.betType:
        out = [b for b in out if b.get("betType") == filters.betType]
    if filters.game:
        out = [b for b in out if b.get("gameId") == filters.game or b.get("gameName") == filters.game]
    if filters.session:
        out = [b for b in out if b.get("session") == filters.session]
    if filters.status:
        out = [b for b in out if b.get("status") == filters.status]

    if filters.dateRange == "custom":
        # 起止日期都填了才生效；止日期含当天
        if filters.fromDate and filters.toDate:
            start = parse_api_datetime(filters.fromDate)
            end = parse_api_datetime(filters.toDate)
            if start and end:
                end = end.replace(hour=23, minute=59, second=59, microsecond=999000)
                out = [b for b in out if (t := _bet_time(b)) is not None and start <= t <= end]
    elif filters.dateRange:
        match filters.dateRange:
            case "today":
                start = now.replace(hour=0, minute=0, second=0, microsecond=0)
            case "week":
                start = now - timedelta(days=7)
            case "month":
                start = _month_back(now)
            case _:
                start = None
        if start is not None:
            out = [b for b in out if (t := _bet_time(b)) is not None and t >= start]
    return out


def sort_bets(bets: list[dict], sort_by: str = "betDate", sort_order: str = "desc") -> list[dict]:
    def key(b: dict):
        v = b.get(sort_by)
        if sort_by in DATE_FIELDS:
            t = parse_api_datetime(v)
            return t.timestamp() if t else float("-inf")
        if v is None:
            return (0, "")
        return (1, v) if isinstance(v, (int, float)) else (2, str(v))

    return sorted(bets, key=key, reverse=(sort_order != "asc"))


def paginate(items: list, page: int = 1, per_page: int = 10) -> tuple[list, int, int]:
    """返回 (当前页, 页码(已夹紧), 总页数)"""
    pages = max(1, math.ceil(len(items) / per_page)) if per_page > 0 else 1
    page = min(max(1, page), pages)
    start = (page - 1) * per_page
    return items[start:start + per_page], page, pages


def to_history_item(bet: dict, session_results: list[dict]) -> BetHistoryItem:
    bet_type = bet.get("betType") or ""
    return BetHistoryItem(
        id=str(bet.get("_id") or bet.get("id") or ""),
        game_name=bet.get("gameName"),
        bet_type=bet_type,
        bet_type_name=BACKEND_DISPLAY_NAMES.get(bet_type, bet_type),
        session=bet.get("session"),
        bet_number=str(bet.get("betNumber") or ""),
        bet_amount=float(bet.get("betAmount") or 0),
        status=bet.get("status") or "pending",
        win_amount=float(bet.get("winAmount") or 0),
        bet_date=bet.get("betDate"),
        result=result_for_bet(bet, session_results),
    )


def winning_bets(bets: Iterable[dict]) -> list[dict]:
    won = [b for b in bets if b.get("status") == "won" and float(b.get("winAmount") or 0) > 0]
    return sort_bets(won, "betDate", "desc")


def total_winnings(bets: Iterable[dict]) -> float:
    return sum(float(b.get("winAmount") or 0) for b in bets)


def _chart_result(open_r: Optional[SessionResult], close_r: Optional[SessionResult]) -> str:
    if open_r and close_r:
        return f"{open_r.pana}-{open_r.digit}{close_r.digit}-{close_r.pana}"
    if open_r:
        return f"{open_r.pana}-{open_r.digit}*-***"
    if close_r:
        return f"***-*{close_r.digit}-{close_r.pana}"
    return "***-**-***"


def result_chart(session_results: Iterable[dict]) -> list[ChartRow]:
    """
    单个游戏的结果走势：按本地日期合并 open/close 两条记录，新日期在前。
      open+close: 123-45-678
      只有 open:  123-4*-***
      只有 close: ***-*5-678
    """
    days: dict = {}
    for raw in session_results:
        r = SessionResult.model_validate(raw)
        day = parse_api_datetime(r.gameDate)
        if day is None:
            logger.warning("skip session result with bad gameDate: %r", r.gameDate)
            continue
        slot = days.setdefault(day.date(), {"open": None, "close": None})
        if r.session in slot:
            slot[r.session] = r

    return [
        ChartRow(
            date=d.strftime("%d/%m/%Y"),
            day_name=d.strftime("%a"),
            result=_chart_result(slot["open"], slot["close"]),
        )
        for d, slot in sorted(days.items(), reverse=True)
    ]
