from datetime import date, datetime
from typing import Optional, Union

MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_relative_date(value: Union[date, datetime], now: Optional[datetime] = None) -> str:
    """
    Human friendly upload date: "today", "yesterday", "3 days ago", "2 weeks ago",
    falling back to an absolute date like "Mar 4, 2025" after a month or for future dates.
    """
    now = now or datetime.now()
    today = now.date()
    day = value.date() if isinstance(value, datetime) else value

    diff_days = (today - day).days

    if diff_days == 0:
        return "today"
    if diff_days == 1:
        return "yesterday"
    if 1 < diff_days <= 7:
        return f"{diff_days} days ago"
    if 7 < diff_days <= 30:
        weeks = diff_days // 7
        return f"{weeks} week{'s' if weeks > 1 else ''} ago"
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.day}, {day.year}"
