"""
派彩估算（仅用于页面展示，实际派彩以服务端为准）。

费率表每个类别是一个 {min, max}：押 min 中奖返还 max（含本金）。
  multiplier = max / min
  payout(stake) = (stake / min) * max

任何缺参 / 未知玩法 / 费率非正，一律返回 0，不抛异常。
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from matka.services.bet_rules import BetType, parse_amount

logger = logging.getLogger(__name__)

CURRENCY = "₹"


def rate_category(bet_type) -> Optional[str]:
    bt = BetType.parse(bet_type)
    if bt is None:
        return None
    match bt:
        case BetType.SINGLE:
            return "singleDigit"
        case BetType.JODI:
            return "jodiDigit"
        case BetType.SINGLE_PANNA:
            return "singlePana"
        case BetType.DOUBLE_PANNA:
            return "doublePana"
        case BetType.TRIPLE_PANNA:
            return "triplePana"
        case BetType.HALF_SANGAM | BetType.HALF_SANGAM_OPEN | BetType.HALF_SANGAM_CLOSE:
            return "halfSangam"
        case BetType.FULL_SANGAM:
            return "fullSangam"
    return None


def js_round(x: float) -> int:
    # Math.round：.5 一律向上
    return int(math.floor(x + 0.5))


def _positive(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f) or f <= 0:
        return None
    return f


def _band(rates: Any, category: str) -> tuple[Optional[float], Optional[float]]:
    if rates is None:
        return None, None
    if hasattr(rates, "model_dump"):
        rates = rates.model_dump(by_alias=True)
    if not isinstance(rates, Mapping):
        return None, None
    band = rates.get(category)
    if band is None:
        return None, None
    if hasattr(band, "model_dump"):
        band = band.model_dump()
    if not isinstance(band, Mapping):
        return None, None
    return _positive(band.get("min")), _positive(band.get("max"))


@dataclass(frozen=True)
class RateMetrics:
    min: float
    max: float
    multiplier: float
    roi_percent: float

    def payout_for_stake(self, stake) -> float:
        s = parse_amount(stake) or 0
        if s <= 0 or self.min <= 0:
            return 0
        return (s / self.min) * self.max


ZERO_METRICS = RateMetrics(0, 0, 0, 0)


def compute_rate_metrics(min_value, max_value) -> RateMetrics:
    lo, hi = _positive(min_value), _positive(max_value)
    if lo is None or hi is None:
        return ZERO_METRICS
    return RateMetrics(
        min=lo,
        max=hi,
        multiplier=hi / lo,
        roi_percent=((hi - lo) / lo) * 100,
    )


def payout_for_stake(bet_amount, bet_type, rates) -> int:
    amount = _positive(parse_amount(bet_amount))
    if amount is None or not bet_type or rates is None:
        logger.debug("payout skipped: amount=%r type=%r rates=%r", bet_amount, bet_type, rates is not None)
        return 0
    category = rate_category(bet_type)
    if category is None:
        logger.debug("no rate category for bet type %r", bet_type)
        return 0
    lo, hi = _band(rates, category)
    if lo is None or hi is None:
        logger.debug("rate %s missing or non-positive", category)
        return 0
    return js_round((amount / lo) * hi)


def get_payout_range(bet_amount, bet_type, rates) -> str:
    return f"{CURRENCY}{payout_for_stake(bet_amount, bet_type, rates)}"


def rate_table(rates) -> list[dict]:
    """费率页：每个类别的 min/max/倍率/ROI，缺失的类别跳过"""
    out = []
    for bt in (BetType.SINGLE, BetType.JODI, BetType.SINGLE_PANNA, BetType.DOUBLE_PANNA,
               BetType.TRIPLE_PANNA, BetType.HALF_SANGAM, BetType.FULL_SANGAM):
        category = rate_category(bt)
        lo, hi = _band(rates, category)
        if lo is None or hi is None:
            continue
        m = compute_rate_metrics(lo, hi)
        out.append({
            "category": category,
            "name": bt.display_name,
            "min": m.min,
            "max": m.max,
            "multiplier": round(m.multiplier, 2),
            "roi_percent": round(m.roi_percent, 2),
        })
    return out


def starline_potential_win(bet_amount, multiplier) -> int:
    amount = _positive(parse_amount(bet_amount))
    rate = _positive(multiplier)
    if amount is None or rate is None:
        return 0
    return int(math.floor(amount * rate))
