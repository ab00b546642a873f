from datetime import datetime, timedelta
import logging
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from matka.core.config import settings
from matka.core.timeutil import now_local
from matka.db.session import AsyncSessionLocal
from matka.models.storage import LocalStorageItem

logger = logging.getLogger(__name__)


class LocalStorage:
    """key/value 本地存储（对应浏览器 localStorage 的 getItem/setItem/removeItem）"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory or AsyncSessionLocal

    async def get_item(self, key: str) -> Optional[str]:
        async with self._session_factory() as session:
            row = await session.get(LocalStorageItem, key)
            return row.value if row else None

    async def set_item(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                row = await session.get(LocalStorageItem, key)
                if row:
                    row.value = value
                else:
                    session.add(LocalStorageItem(key=key, value=value))

    async def remove_item(self, key: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(delete(LocalStorageItem).where(LocalStorageItem.key == key))

    async def keys(self) -> list[str]:
        async with self._session_factory() as session:
            rs = await session.execute(select(LocalStorageItem.key).order_by(LocalStorageItem.key))
            return [k for (k,) in rs.all()]


def _epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


async def dismiss_install_prompt(storage: LocalStorage, now: datetime | None = None) -> int:
    """记录“安装提示已关闭”的时间戳（毫秒）"""
    ts = _epoch_ms(now or now_local())
    await storage.set_item(settings.INSTALL_DISMISSED_KEY, str(ts))
    return ts


async def should_show_install_prompt(
    storage: LocalStorage,
    now: datetime | None = None,
    installed: bool = False,
) -> bool:
    if installed:
        return False
    raw = await storage.get_item(settings.INSTALL_DISMISSED_KEY)
    if not raw:
        return True
    try:
        dismissed_ms = int(raw)
    except ValueError:
        logger.warning("install prompt timestamp is not an integer: %r", raw)
        return True
    window = timedelta(hours=settings.INSTALL_PROMPT_SUPPRESS_HOURS)
    elapsed_ms = _epoch_ms(now or now_local()) - dismissed_ms
    return elapsed_ms >= window.total_seconds() * 1000
