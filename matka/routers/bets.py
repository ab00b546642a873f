import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from matka.core.auth import AuthSession, require_auth
from matka.core.config import settings
from matka.routers.deps import get_authed_api, get_now, raise_api_error
from matka.schemas.bet import (
    BetFormIn, BetHistoryFilters, BetHistoryResp, BetPlaceOut, WinningHistoryResp,
)
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.bet_service import BettingForm
from matka.services.content_service import load_game_rates
from matka.services.history_service import (
    apply_filters, paginate, sort_bets, to_history_item, total_winnings, winning_bets,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bets", tags=["bets"])


async def _prepare_form(data: BetFormIn, api: MatkaApiClient, auth: AuthSession) -> BettingForm:
    try:
        games = await api.list_games()
        profile = await api.user_profile()
    except ApiError as e:
        await raise_api_error(e, auth)
    rates = await load_game_rates(api)

    try:
        form = BettingForm(data.bet_type, balance=profile.get("balance") or 0, game_rates=rates)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Unknown bet type") from e
    form.select_game(games, data.game_id)
    form.fill(session=data.session, bet_number=data.bet_number, bet_amount=data.bet_amount)
    return form


@router.post("/preview", response_model=BetPlaceOut)
async def preview_bet(
    data: BetFormIn,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
    now: datetime = Depends(get_now),
):
    """输入过程中的校验提示、预计奖金与下注摘要（不提交）"""
    form = await _prepare_form(data, api, auth)
    errors = form.validate(now)
    return BetPlaceOut(
        ok=not errors,
        errors=errors,
        potential_win=form.potential_win(),
        summary=form.summary(),
    )


@router.post("", response_model=BetPlaceOut)
async def place_bet(
    data: BetFormIn,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
    now: datetime = Depends(get_now),
):
    form = await _prepare_form(data, api, auth)
    potential = form.potential_win()
    summary = form.summary()

    outcome = await form.submit(api, now)
    if not outcome.ok:
        raise HTTPException(
            status_code=400,
            detail={"errors": outcome.errors, "notifications": outcome.notifications},
        )
    return BetPlaceOut(
        ok=True,
        notifications=outcome.notifications,
        new_balance=outcome.new_balance,
        redirect_to=outcome.redirect_to,
        redirect_after=outcome.redirect_after,
        potential_win=potential,
        summary=summary,
    )


async def _session_results(api: MatkaApiClient) -> list:
    # 结果拉不到时历史照常展示（结果列为空）
    try:
        return await api.session_results()
    except ApiError:
        logger.exception("load session results failed")
        return []


@router.get("/history", response_model=BetHistoryResp)
async def bidding_history(
    filters: BetHistoryFilters = Depends(),
    sort_by: str = Query("betDate"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    try:
        bets = await api.my_bets()
    except ApiError as e:
        await raise_api_error(e, auth)
    results = await _session_results(api)

    rows = sort_bets(apply_filters(bets, filters), sort_by, sort_order)
    page_rows, page, pages = paginate(rows, page, settings.HISTORY_PAGE_SIZE)
    return BetHistoryResp(
        items=[to_history_item(b, results) for b in page_rows],
        page=page,
        pages=pages,
        total=len(rows),
    )


@router.get("/winnings", response_model=WinningHistoryResp)
async def winning_history(
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    try:
        bets = await api.my_bets()
    except ApiError as e:
        await raise_api_error(e, auth)
    results = await _session_results(api)
    won = winning_bets(bets)
    return WinningHistoryResp(
        items=[to_history_item(b, results) for b in won],
        total_winnings=total_winnings(won),
    )
