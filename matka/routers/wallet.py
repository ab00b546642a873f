import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from matka.core.auth import AuthSession, require_auth
from matka.routers.deps import get_authed_api, raise_api_error
from matka.schemas.user import BankDetails, BankDetailsIn, PaymentDetails
from matka.schemas.wallet import (
    FundRequestIn, FundRequestOut, WalletStatementResp, WithdrawIn, WithdrawOut,
)
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.bet_rules import parse_amount
from matka.services.wallet_service import (
    PREDEFINED_AMOUNTS, STATEMENT_TABS, create_deposit, filter_statement, load_main_settings,
    load_statement, to_transaction, validate_bank_details, validate_withdrawal, withdrawal_methods,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wallet", tags=["wallet"])


async def _profile(api: MatkaApiClient, auth: AuthSession) -> dict:
    try:
        return await api.user_profile()
    except ApiError as e:
        await raise_api_error(e, auth)


@router.get("/balance")
async def balance(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    profile = await _profile(api, auth)
    return {"balance": float(profile.get("balance") or 0)}


@router.get("/statement", response_model=WalletStatementResp)
async def statement(
    tab: str = Query("all"),
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    if tab not in STATEMENT_TABS:
        raise HTTPException(status_code=400, detail="Unknown statement tab")
    try:
        txs = await load_statement(api)
    except ApiError as e:
        await raise_api_error(e, auth)
    return WalletStatementResp(tab=tab, transactions=[to_transaction(t) for t in filter_statement(txs, tab)])


# ------------------------------
# 充值
# ------------------------------
@router.get("/add-fund")
async def add_fund_page(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    main = await load_main_settings(api)
    return {
        "predefined_amounts": PREDEFINED_AMOUNTS,
        "minimum_deposit": main["minimumDeposit"],
        "upi_id": main["upiId"],
    }


@router.post("/add-fund", response_model=FundRequestOut)
async def add_fund(
    data: FundRequestIn,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    profile = await _profile(api, auth)
    out = await create_deposit(api, data.amount, data.method, user_name=profile.get("name"))
    if not out.ok:
        raise HTTPException(status_code=400, detail=out.message)
    return out


@router.get("/fund-requests")
async def fund_requests(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    try:
        return {"requests": await api.fund_request_history()}
    except ApiError as e:
        await raise_api_error(e, auth)


# ------------------------------
# 提现
# ------------------------------
@router.get("/withdraw")
async def withdraw_page(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    profile = await _profile(api, auth)
    main = await load_main_settings(api)
    return {
        "balance": float(profile.get("balance") or 0),
        "methods": [m.model_dump() for m in withdrawal_methods(profile)],
        "minimum_withdraw": main["minimumWithdraw"],
        "open_time": main["withdrawalOpenTime"],
        "close_time": main["withdrawalCloseTime"],
    }


@router.post("/withdraw", response_model=WithdrawOut)
async def withdraw(
    data: WithdrawIn,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    profile = await _profile(api, auth)
    main = await load_main_settings(api)
    check = validate_withdrawal(
        data.amount, data.method, float(profile.get("balance") or 0), main["minimumWithdraw"],
    )
    if not check.valid:
        raise HTTPException(status_code=400, detail=check.message)
    if data.method not in {m.id for m in withdrawal_methods(profile)}:
        raise HTTPException(status_code=400, detail="Please add details for the selected withdrawal method")

    try:
        resp = await api.request_withdrawal(parse_amount(data.amount), data.method)
    except ApiError as e:
        if e.status_code == 400:
            raise HTTPException(status_code=400, detail=e.message) from e
        await raise_api_error(e, auth)
    return WithdrawOut(ok=True, message=(resp or {}).get("message") or "Withdrawal request submitted successfully")


@router.get("/withdraw/history")
async def withdraw_history(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    try:
        return {"withdrawals": await api.withdraw_history()}
    except ApiError as e:
        await raise_api_error(e, auth)


# ------------------------------
# 收款方式
# ------------------------------
@router.get("/bank-details", response_model=BankDetails)
async def get_bank_details(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    try:
        return BankDetails.model_validate(await api.get_bank_details())
    except ApiError as e:
        await raise_api_error(e, auth)


@router.put("/bank-details", response_model=BankDetails)
async def put_bank_details(
    data: BankDetailsIn,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    check = validate_bank_details(data)
    if not check.valid:
        raise HTTPException(status_code=400, detail=check.message)
    payload = data.model_dump(exclude={"confirmAccountNumber"})
    payload["ifscCode"] = payload["ifscCode"].strip().upper()
    try:
        resp = await api.put_bank_details(payload)
    except ApiError as e:
        await raise_api_error(e, auth)
    return BankDetails.model_validate((resp or {}).get("bankDetails") or payload)


@router.get("/payment-details", response_model=PaymentDetails)
async def get_payment_details(auth: AuthSession = Depends(require_auth), api: MatkaApiClient = Depends(get_authed_api)):
    try:
        return PaymentDetails.model_validate(await api.get_payment_details())
    except ApiError as e:
        await raise_api_error(e, auth)


@router.put("/payment-details", response_model=PaymentDetails)
async def put_payment_details(
    data: PaymentDetails,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    payload = {k: v.strip() for k, v in data.model_dump(exclude_none=True).items() if isinstance(v, str)}
    try:
        resp = await api.put_payment_details(payload)
    except ApiError as e:
        await raise_api_error(e, auth)
    return PaymentDetails.model_validate((resp or {}).get("paymentDetails") or payload)
