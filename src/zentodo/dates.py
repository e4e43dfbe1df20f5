"""日期编解码 -- 固定 YYYY-MM-DD 格式

文档中的日期以字符串原样保存，保证未修改的内容序列化后字节不变。
"""

import re
from datetime import date, datetime

DATE_FORMAT = "%Y-%m-%d"
DATE_PATTERN = r"\d{4}-\d{2}-\d{2}"

_DATE_RE = re.compile(rf"^{DATE_PATTERN}$")


def format_date(value: date) -> str:
    """date -> "YYYY-MM-DD" """
    return value.strftime(DATE_FORMAT)


def parse_date(value: str | None) -> date | None:
    """"YYYY-MM-DD" -> date，格式不符或日期非法时返回 None"""
    if not value:
        return None
    raw = value.strip()
    if not _DATE_RE.match(raw):
        return None
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except ValueError:
        return None


def today() -> str:
    return format_date(date.today())


def is_overdue(value: str) -> bool:
    # 固定宽度格式下字符串比较与日期比较等价
    return value < today()


def is_today(value: str) -> bool:
    return value == today()


def normalize_date(value: str | None) -> str | None:
    """用户输入的日期规范化；空值返回 None，非法日期抛出 ValueError"""
    if value is None or not value.strip():
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"非法日期，应为 YYYY-MM-DD: {value!r}")
    return format_date(parsed)
