import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta

from services.errors import ValidationError
from utils import day_key

MONTH_NAMES = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December'
]

# Sunday-first weekday labels, rotated for other week starts
DAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']


@dataclass
class DayCell:
    day: int
    date: date
    habits: list = field(default_factory=list)

    def to_dict(self):
        return {'day': self.day, 'date': self.date.isoformat(), 'habits': list(self.habits)}


@dataclass
class MonthGrid:
    year: int
    month: int
    first_weekday: int
    leading_blanks: int
    cells: list

    @property
    def month_name(self):
        return MONTH_NAMES[self.month - 1]

    @property
    def days(self):
        return [c for c in self.cells if c is not None]

    def cell_for(self, day):
        return self.cells[self.leading_blanks + day - 1]

    def to_dict(self):
        return {
            'year': self.year,
            'month': self.month,
            'monthName': self.month_name,
            'weekdayNames': weekday_names(self.first_weekday),
            'leadingBlanks': self.leading_blanks,
            'cells': [c.to_dict() if c else None for c in self.cells],
        }


def weekday_names(first_weekday=calendar.SUNDAY):
    # calendar weekdays are Monday=0; DAY_NAMES starts on Sunday
    start = (first_weekday + 1) % 7
    return DAY_NAMES[start:] + DAY_NAMES[:start]


def aggregate(habits, year, month, first_weekday=calendar.SUNDAY):
    """Lay habit completions out on a month grid.

    The grid starts with one ``None`` per weekday slot before day 1, then one
    DayCell per day of the month. Each cell lists the names of habits
    completed that day, in the order ``habits`` was given.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    first_day_weekday, days_in_month = calendar.monthrange(year, month)
    leading = (first_day_weekday - first_weekday) % 7

    month_start = date(year, month, 1)
    month_end = date(year, month, days_in_month)
    by_day = {}
    for habit in habits:
        seen = set()
        for value in habit.completed_days:
            d = day_key(value)
            if d in seen or not (month_start <= d <= month_end):
                continue
            seen.add(d)
            by_day.setdefault(d, []).append(habit.name)

    cells = [None] * leading
    for day in range(1, days_in_month + 1):
        d = date(year, month, day)
        cells.append(DayCell(day=day, date=d, habits=by_day.get(d, [])))

    return MonthGrid(year=year, month=month, first_weekday=first_weekday,
                     leading_blanks=leading, cells=cells)


def month_start(value):
    return day_key(value).replace(day=1)


def previous_month(value):
    # Pin to day 1 first so the 31st never skips a month
    try:
        return (month_start(value) - timedelta(days=1)).replace(day=1)
    except OverflowError as e:
        raise ValidationError('Month out of range') from e


def next_month(value):
    try:
        return (month_start(value) + timedelta(days=31)).replace(day=1)
    except OverflowError as e:
        raise ValidationError('Month out of range') from e
