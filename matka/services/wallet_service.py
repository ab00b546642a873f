from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Iterable, Optional
from urllib.parse import urlencode

from matka.core.config import settings
from matka.core.timeutil import now_local, parse_api_datetime, to_local
from matka.schemas.user import BankDetailsIn
from matka.schemas.wallet import FundRequestOut, Transaction, WithdrawMethod
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.bet_rules import BACKEND_DISPLAY_NAMES, ValidationResult, format_amount, parse_amount

logger = logging.getLogger(__name__)

OK = ValidationResult(True, "")

WITHDRAW_METHOD_NAMES = {
    "bank": "Bank Account",
    "phonepe": "PhonePe",
    "googlepay": "Google Pay",
    "paytm": "Paytm",
}

STARLINE_DISPLAY_NAMES = {
    "single digit": "Single Digit",
    "single pana": "Single Pana",
    "double pana": "Double Pana",
    "triple pana": "Triple Pana",
}

PREDEFINED_AMOUNTS = [500, 1000, 2000, 5000, 10000, 15000]

STATEMENT_TABS = ("all", "fund-requests", "withdrawals", "bets", "starline-bets", "winnings", "starline-winnings")
_TAB_TYPES = {
    "fund-requests": "fund-request",
    "withdrawals": "withdrawal",
    "bets": "bet",
    "starline-bets": "starline-bet",
    "winnings": "winning",
    "starline-winnings": "starline-winning",
}


# ------------------------------
# 公共设置（失败降级为默认值）
# ------------------------------
async def load_main_settings(api: MatkaApiClient) -> dict:
    try:
        data = await api.main_settings()
    except ApiError:
        logger.exception("load main settings failed, using defaults")
        data = {}
    return {
        "upiId": data.get("upiId") or settings.DEFAULT_UPI_ID,
        "minimumDeposit": data.get("minimumDeposit") or settings.MIN_DEPOSIT,
        "minimumWithdraw": data.get("minimumWithdraw") or settings.MIN_WITHDRAW,
        "withdrawalOpenTime": data.get("withdrawalOpenTime") or "6:00 AM",
        "withdrawalCloseTime": data.get("withdrawalCloseTime") or "9:10 AM",
        "appLink": data.get("appLink") or settings.DEFAULT_APP_LINK,
        "whatsappNumber": data.get("whatsappNumber") or settings.DEFAULT_WHATSAPP_NUMBER,
    }


# ------------------------------
# 充值
# ------------------------------
def generate_transaction_id(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    now = now or now_local()
    r = (rng or random).randint(0, 999)
    return f"{int(now.timestamp() * 1000)}{r}"


def build_upi_link(upi_id: str, amount: int, transaction_id: str, user_name: Optional[str] = None) -> str:
    if not upi_id or "@" not in upi_id:
        raise ValueError("Invalid UPI ID configuration. Please contact support.")
    if not amount or amount <= 0:
        raise ValueError("Invalid amount specified")
    params = [
        ("pa", upi_id),
        ("pn", settings.PAYEE_NAME),
        ("tn", f"Deposit Points - {user_name or 'User'}"),
        ("am", str(amount)),
        ("cu", "INR"),
        ("mc", "1234"),
        ("tid", transaction_id),
        ("tr", transaction_id),
    ]
    return f"upi://pay?{urlencode(params)}"


async def create_deposit(
    api: MatkaApiClient,
    amount: int,
    method: str = "UPI",
    *,
    main_settings: Optional[dict] = None,
    user_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> FundRequestOut:
    """生成 UPI 链接并创建充值申请（待后台审核）；二维码图片由展示端自行生成"""
    method = method.upper()
    if method not in ("UPI", "QR"):
        return FundRequestOut(ok=False, message="Invalid payment method")

    cfg = main_settings or await load_main_settings(api)
    minimum = cfg["minimumDeposit"]
    if not amount or amount < minimum:
        return FundRequestOut(ok=False, message=f"Minimum deposit amount is {format_amount(minimum)} points")

    tid = generate_transaction_id(now)
    try:
        link = build_upi_link(cfg["upiId"], amount, tid, user_name)
    except ValueError as e:
        logger.error("upi link generation failed: %s", e)
        return FundRequestOut(ok=False, message=str(e))

    try:
        await api.create_fund_request(amount, tid, method)
    except ApiError as e:
        if e.errors:
            message = f"Validation error: {', '.join(e.errors)}"
        else:
            message = e.message
        return FundRequestOut(ok=False, transaction_id=tid, message=message)

    return FundRequestOut(
        ok=True,
        transaction_id=tid,
        upi_link=link,
        payment_method=method,
        message="Fund request submitted successfully! Please wait for admin approval.",
    )


# ------------------------------
# 提现
# ------------------------------
def withdrawal_methods(profile: dict) -> list[WithdrawMethod]:
    bank = profile.get("bankDetails") or {}
    pay = profile.get("paymentDetails") or {}
    methods: list[WithdrawMethod] = []
    if all(bank.get(k) for k in ("accountNumber", "accountHolderName", "ifscCode", "bankName")):
        methods.append(WithdrawMethod(
            id="bank", name=WITHDRAW_METHOD_NAMES["bank"],
            details=f"{bank['bankName']} - {bank['accountNumber']}",
        ))
    for method_id, field in (("phonepe", "phonepe"), ("googlepay", "googlePay"), ("paytm", "paytm")):
        if pay.get(field):
            methods.append(WithdrawMethod(id=method_id, name=WITHDRAW_METHOD_NAMES[method_id], details=pay[field]))
    return methods


def validate_withdrawal(
    amount,
    method: str,
    balance: float,
    min_withdraw: Optional[float] = None,
    now: Optional[datetime] = None,
) -> ValidationResult:
    if amount in (None, ""):
        return ValidationResult(False, "Please enter withdrawal amount")
    if not method:
        return ValidationResult(False, "Please select a withdrawal method")
    value = parse_amount(amount)
    minimum = settings.MIN_WITHDRAW if min_withdraw is None else min_withdraw
    if value is None or value < minimum:
        return ValidationResult(False, f"Minimum withdrawal amount is ₹{format_amount(minimum)}")
    if value > (balance or 0):
        return ValidationResult(False, "Insufficient balance")
    now = to_local(now) if now else now_local()
    if now.weekday() == 6:
        return ValidationResult(False, "Withdrawals are closed on Sundays")
    return OK


def validate_bank_details(data: BankDetailsIn) -> ValidationResult:
    if data.accountNumber.strip() != data.confirmAccountNumber.strip():
        return ValidationResult(False, "Account numbers do not match")
    return OK


# ------------------------------
# 钱包流水
# ------------------------------
def _starline_bet_name(bet_type: str) -> str:
    return STARLINE_DISPLAY_NAMES.get(bet_type, bet_type)


def transaction_title(tx: dict) -> str:
    t = tx.get("type")
    match t:
        case "fund-request":
            return f"Fund Request - {tx.get('paymentMethod')}"
        case "bet":
            return f"Bet - {BACKEND_DISPLAY_NAMES.get(tx.get('betType'), tx.get('betType'))}"
        case "starline-bet":
            return f"Starline Bet - {_starline_bet_name(tx.get('betType'))}"
        case "winning":
            return f"Winning - {BACKEND_DISPLAY_NAMES.get(tx.get('betType'), tx.get('betType'))}"
        case "starline-winning":
            return f"Starline Win - {_starline_bet_name(tx.get('betType'))}"
        case _:
            return f"Withdrawal - {WITHDRAW_METHOD_NAMES.get(tx.get('method'), 'Unknown')}"


def _tx_date(tx: dict) -> Optional[str]:
    t = tx.get("type")
    if t in ("bet", "starline-bet"):
        return tx.get("betDate")
    if t in ("winning", "starline-winning"):
        return tx.get("resultDate") or tx.get("betDate")
    return tx.get("createdAt")


def _won(bets: Iterable[dict]) -> list[dict]:
    return [b for b in bets if b.get("status") == "won" and float(b.get("winAmount") or 0) > 0]


def build_statement(
    funds: Iterable[dict],
    withdrawals: Iterable[dict],
    bets: Iterable[dict],
    starline_bets: Iterable[dict] = (),
) -> list[dict]:
    """合并充值、提现、下注、中奖为一条时间线（新 -> 旧）"""
    bets = list(bets)
    starline_bets = list(starline_bets)
    combined = (
        [{**f, "type": "fund-request"} for f in funds]
        + [{**w, "type": "withdrawal"} for w in withdrawals]
        + [{**b, "type": "bet", "amount": b.get("betAmount")} for b in bets]
        + [{**b, "type": "starline-bet", "amount": b.get("betAmount")} for b in starline_bets]
        + [{**b, "type": "winning", "amount": b.get("winAmount"),
            "createdAt": b.get("resultDate") or b.get("betDate")} for b in _won(bets)]
        + [{**b, "type": "starline-winning", "amount": b.get("winAmount"),
            "createdAt": b.get("resultDate") or b.get("betDate")} for b in _won(starline_bets)]
    )

    def key(tx: dict) -> float:
        dt = parse_api_datetime(_tx_date(tx))
        return dt.timestamp() if dt else float("-inf")

    return sorted(combined, key=key, reverse=True)


def filter_statement(transactions: list[dict], tab: str = "all") -> list[dict]:
    if tab == "all" or tab not in _TAB_TYPES:
        return transactions
    wanted = _TAB_TYPES[tab]
    return [tx for tx in transactions if tx.get("type") == wanted]


def to_transaction(tx: dict) -> Transaction:
    return Transaction(
        type=tx.get("type"),
        title=transaction_title(tx),
        amount=float(tx.get("amount") or 0),
        status=tx.get("status"),
        date=_tx_date(tx),
    )


async def load_statement(api: MatkaApiClient) -> list[dict]:
    funds = await api.fund_request_history()
    withdrawals = await api.withdraw_history()
    bets = await api.my_bets()
    starline = await api.starline_bets()
    return build_statement(funds, withdrawals, bets, starline)
