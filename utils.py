import logging
import sys
from datetime import date, timedelta
from typing import Optional, Tuple


DATE_RANGE_SHORTCUTS = ["today", "yesterday", "this-week", "last-week"]


# 将日志配置移到这里，作为一个可被调用的函数
def setup_logging(level: int = logging.INFO):
    """配置全局日志"""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def date_range_shortcut(name: str, today: Optional[date] = None) -> Tuple[str, str]:
    """
    快捷日期范围，返回 (start, end) 的 YYYY-MM-DD 字符串。
    一周从周一开始，到周日结束。
    """
    today = today or date.today()
    monday = today - timedelta(days=today.weekday())
    if name == "today":
        start = end = today
    elif name == "yesterday":
        start = end = today - timedelta(days=1)
    elif name == "this-week":
        start, end = monday, monday + timedelta(days=6)
    elif name == "last-week":
        start, end = monday - timedelta(days=7), monday - timedelta(days=1)
    else:
        raise ValueError(f"未知的日期范围: {name}")
    return start.isoformat(), end.isoformat()
