"""
时间戳与时长解析

截止时间以 RFC 3339 字符串保存在注解中；时长注解接受
纯秒数（"600"）或带单位的组合（"600s"、"10m"、"1h30m"）。
"""
import re
from datetime import datetime, timezone
from typing import Optional

# 单位 -> 秒
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_NUMBER = r"(?:\d+(?:\.\d*)?|\.\d+)"
_DURATION_PART = re.compile(rf"({_NUMBER})(ns|us|µs|ms|s|m|h)")
_BARE_SECONDS = re.compile(rf"[+-]?{_NUMBER}")
_FRACTION = re.compile(r"\.(\d+)")


def utcnow() -> datetime:
    """当前 UTC 时间（带时区）"""
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """
    解析 RFC 3339 时间戳

    Returns:
        带时区的 datetime；空串、无时区或格式错误返回 None
    """
    if not raw:
        return None

    value = raw.strip()
    if len(value) < 11 or value[10] not in ("T", "t"):
        return None
    # fromisoformat 在旧解释器上不认识 "Z"
    if value[-1] in ("Z", "z"):
        value = value[:-1] + "+00:00"

    # 小数秒补齐或截断到 6 位（fromisoformat 在旧解释器上只接受 3 或 6 位）
    fraction = _FRACTION.match(value, 19)
    if fraction is not None:
        digits = fraction.group(1)[:6].ljust(6, "0")
        value = value[:fraction.start()] + "." + digits + value[fraction.end():]

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return None
    return parsed


def format_timestamp(moment: datetime) -> str:
    """格式化为 RFC 3339（UTC，秒精度）"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_duration(raw: Optional[str]) -> Optional[float]:
    """
    解析时长字符串，返回秒数

    支持:
    - 纯数字，按秒处理: "600", "1.5"
    - 单位组合: "600s", "10m", "1h30m", "250ms"
    - 可选前导符号: "-5s" 解析为 -5.0，由调用方决定是否接受

    Returns:
        秒数；无法解析返回 None
    """
    if raw is None:
        return None

    value = raw.strip()
    if not value:
        return None

    if _BARE_SECONDS.fullmatch(value):
        return float(value)

    sign = 1.0
    if value[0] in "+-":
        sign = -1.0 if value[0] == "-" else 1.0
        value = value[1:]

    total = 0.0
    pos = 0
    while pos < len(value):
        match = _DURATION_PART.match(value, pos)
        if match is None:
            return None
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0:
        return None
    return sign * total
