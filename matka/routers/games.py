from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from matka.core.auth import AuthSession, require_auth
from matka.routers.deps import get_api, get_authed_api, get_storage, raise_api_error
from matka.schemas.game import (
    PENDING_RESULT, DashboardResp, Game, GameCard, GameChartResp, GameSelectionResp,
    GameTypeOption, PayoutPreviewResp, SessionFlags,
)
from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.bet_rules import BetType, parse_amount
from matka.services.content_service import load_game_rates
from matka.services.history_service import result_chart
from matka.services.payout import payout_for_stake, rate_table
from matka.services.session_window import (
    bet_type_available, can_open_bet_type, closed_message,
    game_status, session_availability, sort_games_by_open_time,
)
from matka.services.storage_service import LocalStorage, should_show_install_prompt
from matka.services.wallet_service import load_main_settings

router = APIRouter(prefix="/api/games", tags=["games"])

# 选择玩法页的按钮顺序
GAME_TYPES = [
    ("Single Digit", "single-digit", BetType.SINGLE),
    ("Jodi", "jodi", BetType.JODI),
    ("Single Panna", "single-panna", BetType.SINGLE_PANNA),
    ("Double Panna", "double-panna", BetType.DOUBLE_PANNA),
    ("Triple Panna", "triple-panna", BetType.TRIPLE_PANNA),
    ("Half Sangam", "half-sangam", BetType.HALF_SANGAM),
    ("Full Sangam", "full-sangam", BetType.FULL_SANGAM),
]


def game_card(game: Game, now: Optional[datetime] = None) -> GameCard:
    sa = session_availability(game, now)
    result = game.result or PENDING_RESULT
    return GameCard(
        id=game.id,
        name=game.gameName,
        open_time=game.openTime,
        close_time=game.closeTime,
        result=result,
        result_pending=result == PENDING_RESULT,
        status=game_status(game, now),
        sessions=SessionFlags(**sa.as_dict()),
    )


async def _load_games(request: Request, api: MatkaApiClient) -> tuple[List[Game], Optional[float]]:
    """应用级登录态走轮询器（手动刷新与定时刷新共用票号），否则直接拉取"""
    poller = getattr(request.app.state, "poller", None)
    if poller is not None and api is poller.api:
        await poller.refresh_all()
        return poller.state.games, poller.state.balance
    games = sort_games_by_open_time(Game.model_validate(g) for g in await api.list_games())
    profile = await api.user_profile()
    return games, float(profile.get("balance") or 0)


async def _find_game(api: MatkaApiClient, game_id: str) -> Game:
    for g in await api.list_games():
        game = Game.model_validate(g)
        if game.id == game_id:
            return game
    raise HTTPException(status_code=404, detail="Game not found")


@router.get("/dashboard", response_model=DashboardResp)
async def dashboard(
    request: Request,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
    storage: LocalStorage = Depends(get_storage),
    installed: bool = Query(False),
):
    try:
        games, balance = await _load_games(request, api)
    except ApiError as e:
        await raise_api_error(e, auth)
    main = await load_main_settings(api)
    return DashboardResp(
        balance=balance or 0,
        games=[game_card(g) for g in games],
        app_link=main["appLink"],
        whatsapp_number=main["whatsappNumber"],
        show_install_prompt=await should_show_install_prompt(storage, installed=installed),
    )


@router.get("/rates")
async def game_rates(api: MatkaApiClient = Depends(get_api)):
    rates = await load_game_rates(api)
    if rates is None:
        return {"rates": [], "message": "Game rates are not available right now"}
    return {"rates": rate_table(rates)}


@router.get("/payout-preview", response_model=PayoutPreviewResp)
async def payout_preview(
    bet_type: str = Query(...),
    bet_amount: str = Query(""),
    api: MatkaApiClient = Depends(get_api),
):
    bt = BetType.parse(bet_type)
    if bt is None:
        raise HTTPException(status_code=400, detail="Unknown bet type")
    rates = await load_game_rates(api)
    payout = payout_for_stake(bet_amount, bt, rates) if rates is not None else 0
    return PayoutPreviewResp(
        bet_type=bt.value,
        bet_amount=parse_amount(bet_amount) or 0,
        payout=payout,
        display=f"₹{payout}",
    )


@router.get("/{game_id}", response_model=GameSelectionResp)
async def game_selection(
    game_id: str,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    try:
        game = await _find_game(api, game_id)
    except ApiError as e:
        await raise_api_error(e, auth)
    options = [
        GameTypeOption(
            name=name,
            path=f"/bet/{path}/{game.id}",
            bet_type=bt.value,
            available=bet_type_available(game, bt),
        )
        for name, path, bt in GAME_TYPES
    ]
    return GameSelectionResp(game=game_card(game), game_types=options, closed_message=closed_message(game))


@router.get("/{game_id}/chart", response_model=GameChartResp)
async def game_chart(
    game_id: str,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
):
    """结果走势表；游戏列表里找不到时只返回 id"""
    try:
        games = [Game.model_validate(g) for g in await api.list_games()]
        results = await api.session_results(game_id)
    except ApiError as e:
        await raise_api_error(e, auth)
    game = next((g for g in games if g.id == game_id), None)
    return GameChartResp(
        game_id=game_id,
        game_name=game.gameName if game else None,
        results=result_chart(results),
    )


@router.get("/{game_id}/bet-types/{bet_type}")
async def open_bet_type(
    game_id: str,
    bet_type: str,
    auth: AuthSession = Depends(require_auth),
    api: MatkaApiClient = Depends(get_authed_api),
) -> dict[str, Any]:
    """点击玩法按钮：两个 session 都关闭时拒绝进入"""
    bt = BetType.parse(bet_type)
    path = next((p for _, p, t in GAME_TYPES if t is bt), None)
    if path is None:
        raise HTTPException(status_code=400, detail="Unknown bet type")
    try:
        game = await _find_game(api, game_id)
    except ApiError as e:
        await raise_api_error(e, auth)
    ok, message = can_open_bet_type(game, bt)
    if not ok:
        raise HTTPException(status_code=400, detail=message)
    return {"ok": True, "redirect_to": f"/bet/{path}/{game.id}"}
