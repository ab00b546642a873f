from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

PENDING_RESULT = "***-**-***"

class RateBand(BaseModel):
    min: float
    max: float

# 费率表：类别名与服务端字段一致
class GameRates(BaseModel):
    model_config = ConfigDict(extra="ignore")

    singleDigit: Optional[RateBand] = None
    jodiDigit: Optional[RateBand] = None
    singlePana: Optional[RateBand] = None
    doublePana: Optional[RateBand] = None
    triplePana: Optional[RateBand] = None
    halfSangam: Optional[RateBand] = None
    fullSangam: Optional[RateBand] = None

class Game(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., alias="_id")
    gameName: str = ""
    openTime: Optional[str] = ""
    closeTime: Optional[str] = ""
    result: Optional[str] = PENDING_RESULT
    isActive: Optional[bool] = None

class SessionResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    gameId: Optional[str] = None
    session: Optional[str] = None
    gameDate: Optional[str] = None
    pana: Optional[str] = None
    digit: Optional[str | int] = None

class SessionFlags(BaseModel):
    open_available: bool
    close_available: bool
    has_open_result: bool
    has_close_result: bool
    has_complete_result: bool
    is_active: bool
    market_closed: bool
    full_sangam_available: bool

class GameCard(BaseModel):
    id: str
    name: str
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    result: str
    result_pending: bool
    status: str
    sessions: SessionFlags

class GameTypeOption(BaseModel):
    name: str
    path: str
    bet_type: str
    available: bool

class GameSelectionResp(BaseModel):
    game: GameCard
    game_types: List[GameTypeOption]
    closed_message: Optional[str] = None

class DashboardResp(BaseModel):
    balance: float
    games: List[GameCard]
    app_link: str
    whatsapp_number: str
    show_install_prompt: bool = False

class PayoutPreviewResp(BaseModel):
    bet_type: str
    bet_amount: float
    payout: int
    display: str

# Starline：单日一次开奖，无 open/close 之分
class StarlineGame(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., alias="_id")
    gameName: str = ""
    openTime: str
    minBet: float = 10
    maxBet: float = 10000
    currentStatus: Optional[str] = None
    isActive: Optional[bool] = None

# 结果走势：每天一行
class ChartRow(BaseModel):
    date: str
    day_name: str
    result: str

class GameChartResp(BaseModel):
    game_id: str
    game_name: Optional[str] = None
    results: List[ChartRow]
