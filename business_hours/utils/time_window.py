from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from business_hours.core.config import settings
from business_hours.core.errors import InvalidOrder, TooShort

TIME_FORMAT = "%H:%M:%S"

def parse_time(value: Union[str, time]) -> time:
    """
    Parse a wall-clock time in HH:MM:SS (or HH:MM) form
    """
    if isinstance(value, time):
        return value
    for fmt in (TIME_FORMAT, "%H:%M"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time format: {value}. Use HH:MM:SS")

def format_time(value: Optional[time]) -> Optional[str]:
    return value.strftime(TIME_FORMAT) if value else None

def format_time_display(value: Optional[time]) -> str:
    """9:00 AM style, or --:-- when unset"""
    if value is None:
        return "--:--"
    return value.strftime("%I:%M %p").lstrip("0")

def window_label(is_closed: bool, open_time: Optional[time], close_time: Optional[time]) -> str:
    """
    Display text for a window: CLOSED, BLOCK: <window> for a blocked window,
    or the plain window when open
    """
    window = f"{format_time_display(open_time)} - {format_time_display(close_time)}"
    if is_closed and open_time is None:
        return "CLOSED"
    if is_closed:
        return f"BLOCK: {window}"
    return window

def minutes_between(open_time: time, close_time: time) -> float:
    anchor = date.min
    delta = datetime.combine(anchor, close_time) - datetime.combine(anchor, open_time)
    return delta.total_seconds() / 60

def validate_time_window(
    open_time: Union[str, time],
    close_time: Union[str, time],
    min_duration_minutes: Optional[int] = None
) -> None:
    """
    Check an (open, close) pair.

    Raises:
        InvalidOrder: open is not strictly before close
        TooShort: the window is shorter than min_duration_minutes
    """
    if min_duration_minutes is None:
        min_duration_minutes = settings.MIN_WINDOW_MINUTES

    open_time = parse_time(open_time)
    close_time = parse_time(close_time)

    if not open_time < close_time:
        raise InvalidOrder()

    if minutes_between(open_time, close_time) < min_duration_minutes:
        raise TooShort(min_duration_minutes)

def windows_overlap(start, end, other_start, other_end) -> bool:
    """Half-open overlap of two datetime or same-day time windows"""
    return start < other_end and end > other_start

def add_minutes(value: datetime, minutes: int) -> datetime:
    return value + timedelta(minutes=minutes)
