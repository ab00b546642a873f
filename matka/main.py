# matka/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from matka.core.auth import AuthSession
from matka.core.config import settings
from matka.db.session import init_db

from matka.routers.auth import router as auth_router
from matka.routers.games import router as games_router
from matka.routers.bets import router as bets_router
from matka.routers.wallet import router as wallet_router
from matka.routers.content import router as content_router
from matka.routers.starline import router as starline_router
import logging, sys

from matka.services.api_client import ApiError, MatkaApiClient
from matka.services.storage_service import LocalStorage
from matka.tasks.poller import Poller

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=getattr(settings, "APP_VERSION", "0.1.0"),
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logging.getLogger("uvicorn").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)
logging.getLogger("apscheduler").setLevel(logging.ERROR)
logging.getLogger("httpx").setLevel(logging.WARNING)

# 轮询器启停日志
logging.getLogger("matka.tasks.poller").setLevel(logging.INFO)

app.include_router(auth_router)
app.include_router(games_router)
app.include_router(bets_router)
app.include_router(wallet_router)
app.include_router(content_router)
app.include_router(starline_router)


@app.on_event("startup")
async def on_startup() -> None:
    await init_db()
    storage = LocalStorage()
    auth = AuthSession(storage)
    await auth.load()
    api = MatkaApiClient(auth)

    # 本地有令牌：先校验一次，401 直接清掉
    if auth.is_authenticated:
        try:
            await api.auth_profile()
        except ApiError as e:
            if e.status_code == 401:
                logger.warning("stored token rejected, clearing")
                await auth.clear()
            else:
                logger.warning("profile check failed: %s", e.message)

    app.state.storage = storage
    app.state.auth = auth
    app.state.api = api
    app.state.poller = Poller(api)
    app.state.poller.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await app.state.poller.stop()
    await app.state.api.aclose()


@app.get("/ping")
async def ping():
    return {"ok": True, "env": settings.APP_ENV}


@app.get("/healthz")
async def healthz():
    return {"status": "healthy"}
