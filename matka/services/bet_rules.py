"""
下注号码规则：玩法枚举、panna 分类、号码校验与格式化、金额校验。

全部是纯函数，不访问网络、不读时钟（需要“今天”的地方由调用方传 now）。
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

import pytz

from matka.core.timeutil import local_midnight

_ONE_DIGIT = re.compile(r"\d", re.ASCII)
_TWO_DIGITS = re.compile(r"\d{2}", re.ASCII)
_THREE_DIGITS = re.compile(r"\d{3}", re.ASCII)
_AMOUNT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)", re.ASCII)


class PannaClass(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"


class Session(str, Enum):
    OPEN = "open"
    CLOSE = "close"


class BetType(str, Enum):
    SINGLE = "single"
    JODI = "jodi"
    SINGLE_PANNA = "single_panna"
    DOUBLE_PANNA = "double_panna"
    TRIPLE_PANNA = "triple_panna"
    HALF_SANGAM = "half_sangam"
    HALF_SANGAM_OPEN = "half_sangam_open"
    HALF_SANGAM_CLOSE = "half_sangam_close"
    FULL_SANGAM = "full_sangam"

    @classmethod
    def parse(cls, value) -> Optional["BetType"]:
        """前端 snake_case 与后端 camelCase 两种写法都接受；未知返回 None"""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        s = str(value).strip()
        try:
            return cls(s)
        except ValueError:
            pass
        for member in cls:
            if member.backend_name == s and member not in (cls.HALF_SANGAM_OPEN, cls.HALF_SANGAM_CLOSE):
                return member
        return None

    @property
    def backend_name(self) -> str:
        match self:
            case BetType.SINGLE:
                return "single"
            case BetType.JODI:
                return "jodi"
            case BetType.SINGLE_PANNA:
                return "singlePanna"
            case BetType.DOUBLE_PANNA:
                return "doublePanna"
            case BetType.TRIPLE_PANNA:
                return "triplePanna"
            case BetType.HALF_SANGAM | BetType.HALF_SANGAM_OPEN | BetType.HALF_SANGAM_CLOSE:
                return "halfSangam"
            case BetType.FULL_SANGAM:
                return "fullSangam"

    @property
    def display_name(self) -> str:
        match self:
            case BetType.SINGLE:
                return "Single Digit"
            case BetType.JODI:
                return "Jodi Digit"
            case BetType.SINGLE_PANNA:
                return "Single Panna"
            case BetType.DOUBLE_PANNA:
                return "Double Panna"
            case BetType.TRIPLE_PANNA:
                return "Triple Panna"
            case BetType.HALF_SANGAM:
                return "Half Sangam"
            case BetType.HALF_SANGAM_OPEN:
                return "Half Sangam (Open)"
            case BetType.HALF_SANGAM_CLOSE:
                return "Half Sangam (Close)"
            case BetType.FULL_SANGAM:
                return "Full Sangam"

    @property
    def uses_session(self) -> bool:
        return self is not BetType.FULL_SANGAM

    @property
    def panna_class(self) -> Optional[PannaClass]:
        match self:
            case BetType.SINGLE_PANNA:
                return PannaClass.SINGLE
            case BetType.DOUBLE_PANNA:
                return PannaClass.DOUBLE
            case BetType.TRIPLE_PANNA:
                return PannaClass.TRIPLE
            case _:
                return None

    def for_session(self, session: str) -> "BetType":
        """半 sangam 按当前选择的 session 换成带 session 的校验类型"""
        if self is BetType.HALF_SANGAM:
            return BetType.HALF_SANGAM_OPEN if session == Session.OPEN.value else BetType.HALF_SANGAM_CLOSE
        return self


# 后端玩法名 -> 历史/流水页的展示名
BACKEND_DISPLAY_NAMES = {
    "single": "Single",
    "jodi": "Jodi",
    "singlePanna": "Single Panna",
    "doublePanna": "Double Panna",
    "triplePanna": "Triple Panna",
    "halfSangam": "Half Sangam",
    "fullSangam": "Full Sangam",
}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.valid


OK = ValidationResult(True, "")


def classify_panna(panna: str) -> PannaClass:
    """按排序后的三位字符判断 triple / double / single"""
    if len(panna) != 3:
        raise ValueError(f"panna must have exactly 3 characters: {panna!r}")
    a, b, c = sorted(panna)
    if a == b == c:
        return PannaClass.TRIPLE
    if a == b or b == c or a == c:
        return PannaClass.DOUBLE
    return PannaClass.SINGLE


def validate_bet_number(bet_type, bet_number: str) -> ValidationResult:
    bt = BetType.parse(bet_type)
    if bt is None or bt is BetType.HALF_SANGAM:
        # half_sangam 必须先用 for_session() 换成 open/close
        return ValidationResult(False, "Unknown bet type")

    number = "" if bet_number is None else str(bet_number)

    match bt:
        case BetType.SINGLE:
            if not _ONE_DIGIT.fullmatch(number):
                return ValidationResult(False, "Single digit must be a number between 0-9")
            return OK

        case BetType.JODI:
            if not _TWO_DIGITS.fullmatch(number):
                return ValidationResult(False, "Jodi must be a 2-digit number")
            return OK

        case BetType.SINGLE_PANNA | BetType.DOUBLE_PANNA | BetType.TRIPLE_PANNA:
            if not _THREE_DIGITS.fullmatch(number):
                return ValidationResult(False, "Panna must be a 3-digit number")
            expected = bt.panna_class
            actual = classify_panna(number)
            if actual is not expected:
                return ValidationResult(
                    False,
                    f"This is a {actual.value} panna, but you selected {expected.value} panna",
                )
            return OK

        case BetType.HALF_SANGAM_OPEN | BetType.HALF_SANGAM_CLOSE:
            msg = "Half sangam format: digit-panna (e.g., 5-123)"
            parts = number.split("-")
            if len(parts) != 2:
                return ValidationResult(False, msg)
            digit_part, panna_part = parts
            if not _ONE_DIGIT.fullmatch(digit_part) or not _THREE_DIGITS.fullmatch(panna_part):
                return ValidationResult(False, msg)
            return OK

        case BetType.FULL_SANGAM:
            msg = "Full sangam format: panna-panna (e.g., 123-456)"
            parts = number.split("-")
            if len(parts) != 2:
                return ValidationResult(False, msg)
            first, second = parts
            if not _THREE_DIGITS.fullmatch(first) or not _THREE_DIGITS.fullmatch(second):
                return ValidationResult(False, msg)
            return OK

    return ValidationResult(False, "Unknown bet type")


def reformat_bet_number(bet_type, bet_number: str) -> str:
    """调用方的格式化：full sangam 输入 6 位无横杠时，在第 3 位后补 '-'"""
    number = "" if bet_number is None else str(bet_number)
    if BetType.parse(bet_type) is BetType.FULL_SANGAM and len(number) == 6 and "-" not in number:
        return f"{number[:3]}-{number[3:]}"
    return number


# 下注确认里号码后面的标签；不带 session 的 half sangam 不加标签
_BET_NUMBER_LABELS = {
    BetType.SINGLE: "Single Digit",
    BetType.JODI: "Jodi",
    BetType.SINGLE_PANNA: "Single Panna",
    BetType.DOUBLE_PANNA: "Double Panna",
    BetType.TRIPLE_PANNA: "Triple Panna",
    BetType.HALF_SANGAM_OPEN: "Half Sangam - Open",
    BetType.HALF_SANGAM_CLOSE: "Half Sangam - Close",
    BetType.FULL_SANGAM: "Full Sangam",
}


def format_bet_number(bet_type, bet_number: str) -> str:
    label = _BET_NUMBER_LABELS.get(BetType.parse(bet_type))
    if label is None:
        return bet_number
    return f"{bet_number} ({label})"


def session_display_name(session: Optional[str]) -> str:
    return "Open" if session == Session.OPEN.value else "Close"


def format_amount(value: float) -> str:
    """10.0 -> '10'，10.5 -> '10.5'"""
    f = float(value)
    return str(int(f)) if f.is_integer() else str(f)


def parse_amount(value) -> Optional[float]:
    """宽松解析金额（取前缀数字，类似 parseFloat）；无法解析返回 None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
        return None if f != f else f
    m = _AMOUNT_PREFIX.match(str(value))
    if not m:
        return None
    return float(m.group(1))


def validate_bet_amount(amount, min_bet: float = 10, max_bet: float = 10000, user_balance: float = 0) -> ValidationResult:
    num = parse_amount(amount)
    if num is None or num <= 0:
        return ValidationResult(False, "Please enter a valid bet amount")
    if num < min_bet:
        return ValidationResult(False, f"Minimum bet amount is ₹{format_amount(min_bet)}")
    if num > max_bet:
        return ValidationResult(False, f"Maximum bet amount is ₹{format_amount(max_bet)}")
    if num > (user_balance or 0):
        return ValidationResult(False, "Insufficient balance")
    return OK


def current_game_date(now: Optional[datetime] = None) -> str:
    """当天本地零点，按 UTC 输出 ISO8601（与浏览器 toISOString 一致）"""
    midnight = local_midnight(now).astimezone(pytz.utc)
    return midnight.strftime("%Y-%m-%dT%H:%M:%S.000Z")
