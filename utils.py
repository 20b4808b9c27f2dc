from datetime import date, datetime, time

COLOR_HEX = {
    'red': '#ef4444',
    'orange': '#f97316',
    'yellow': '#eab308',
    'green': '#22c55e',
    'blue': '#3b82f6',
    'indigo': '#6366f1',
    'purple': '#a855f7',
    'pink': '#ec4899',
}
HEX_COLOR = {hex_code: name for name, hex_code in COLOR_HEX.items()}

DEFAULT_COLOR = 'indigo'
NEUTRAL_HEX = '#6b7280'


def color_to_hex(name):
    if not name:
        return NEUTRAL_HEX
    return COLOR_HEX.get(name.strip().lower(), NEUTRAL_HEX)


def hex_to_color(hex_code):
    if not hex_code:
        return DEFAULT_COLOR
    return HEX_COLOR.get(hex_code.strip().lower(), DEFAULT_COLOR)


def day_key(value):
    """Normalize a date, datetime or epoch-ms timestamp to a local calendar day.

    Aware datetimes are converted to server local time first, so the same
    instant always lands on the same day no matter how it was sent.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Unsupported day value: {value!r}")
    return datetime.fromtimestamp(value / 1000).date()


def day_to_epoch_ms(day):
    # Local midnight
    return int(datetime.combine(day, time()).timestamp() * 1000)


def datetime_to_epoch_ms(value):
    return int(value.timestamp() * 1000)


def epoch_ms_to_datetime(value):
    return datetime.fromtimestamp(value / 1000)


def normalize_days(values):
    """Deduplicated, ascending day keys for any iterable of day values."""
    return sorted({day_key(v) for v in values})


def flip_day(days, day):
    """Toggle one day in an ordered day set.

    Returns the new ascending list and whether the day is now present.
    """
    day = day_key(day)
    current = normalize_days(days)
    if day in current:
        current.remove(day)
        return current, False
    current.append(day)
    current.sort()
    return current, True
