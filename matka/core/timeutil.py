import pytz
from datetime import datetime
from matka.core.config import settings

TZ = pytz.timezone(settings.TZ)

def now_local() -> datetime:
    return datetime.now(TZ)

def to_local(dt: datetime) -> datetime:
    # naive 视为本地时间
    if dt.tzinfo is None:
        return TZ.localize(dt)
    return dt.astimezone(TZ)

def minutes_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute

def local_midnight(now: datetime | None = None) -> datetime:
    now = to_local(now) if now else now_local()
    return TZ.localize(datetime(now.year, now.month, now.day))

def parse_api_datetime(value) -> datetime | None:
    """解析上游返回的 ISO 时间串（兼容结尾 Z），统一转成本地时区；失败返回 None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_local(value)
    s = str(value).strip()
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        try:
            dt = datetime.strptime(s, "%Y-%m-%d %H:%M:%S")
        except ValueError:
            return None
    return to_local(dt)
