import calendar
import pytest
from datetime import date, datetime
from services.calendar_service import (
    aggregate, next_month, previous_month, weekday_names,
)
from services.records import HabitRecord
from services.errors import ValidationError
from conftest import ms


def habit(name, days):
    return HabitRecord(identity=name, name=name, description='', color='blue',
                       created_at=datetime(2024, 1, 1), completed_days=days)


def test_march_2024_scenario():
    habits = [
        habit('Read', [ms(2024, 3, 5), ms(2024, 3, 31)]),
        habit('Run', [ms(2024, 3, 5)]),
    ]
    grid = aggregate(habits, 2024, 3)

    # March 1, 2024 is a Friday: five blanks in a Sunday-first week.
    assert grid.leading_blanks == 5
    assert grid.cells[:5] == [None] * 5
    assert len(grid.cells) == 5 + 31
    assert grid.cell_for(5).habits == ['Read', 'Run']
    assert grid.cell_for(31).habits == ['Read']
    assert grid.cell_for(6).habits == []
    assert grid.month_name == 'March'


def test_input_order_is_kept():
    habits = [habit('Zen', [date(2024, 3, 5)]), habit('Apple', [date(2024, 3, 5)])]
    assert aggregate(habits, 2024, 3).cell_for(5).habits == ['Zen', 'Apple']


def test_same_day_timestamps_count_once():
    habits = [habit('Read', [ms(2024, 3, 5, 7), ms(2024, 3, 5, 23, 30)])]
    grid = aggregate(habits, 2024, 3)
    assert grid.cell_for(5).habits == ['Read']
    assert sum(len(c.habits) for c in grid.days) == 1


def test_other_months_are_ignored():
    habits = [habit('Read', [date(2024, 2, 29), date(2024, 4, 1)])]
    assert all(not c.habits for c in aggregate(habits, 2024, 3).days)


def test_monday_first_week():
    grid = aggregate([], 2024, 3, first_weekday=calendar.MONDAY)
    assert grid.leading_blanks == 4
    assert grid.to_dict()['weekdayNames'][0] == 'Mon'


def test_leap_february():
    grid = aggregate([], 2024, 2)
    assert len(grid.days) == 29
    assert grid.leading_blanks == 4  # Thursday


def test_invalid_month():
    with pytest.raises(ValueError):
        aggregate([], 2024, 13)


def test_to_dict():
    data = aggregate([habit('Read', [date(2024, 3, 5)])], 2024, 3).to_dict()
    assert data['leadingBlanks'] == 5
    assert data['cells'][0] is None
    assert data['cells'][5 + 4] == {'day': 5, 'date': '2024-03-05', 'habits': ['Read']}
    assert data['weekdayNames'] == ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']


def test_weekday_names_rotation():
    assert weekday_names(calendar.SUNDAY)[0] == 'Sun'
    assert weekday_names(calendar.SATURDAY) == ['Sat', 'Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri']


def test_navigation_from_day_31_does_not_skip():
    assert previous_month(date(2024, 3, 31)) == date(2024, 2, 1)
    assert next_month(date(2024, 1, 31)) == date(2024, 2, 1)
    assert previous_month(date(2024, 1, 15)) == date(2023, 12, 1)
    assert next_month(date(2024, 12, 31)) == date(2025, 1, 1)


def test_navigation_is_reversible_for_every_month():
    for year in (2023, 2024):
        for month in range(1, 13):
            for day in (1, 28, calendar.monthrange(year, month)[1]):
                start = date(year, month, day)
                there_and_back = previous_month(next_month(start))
                back_and_forth = next_month(previous_month(start))
                assert (there_and_back.year, there_and_back.month) == (year, month)
                assert (back_and_forth.year, back_and_forth.month) == (year, month)


def test_navigation_past_calendar_edges_is_rejected():
    with pytest.raises(ValidationError):
        previous_month(date(1, 1, 31))
    with pytest.raises(ValidationError):
        next_month(date(9999, 12, 1))
    assert next_month(date(9999, 11, 30)) == date(9999, 12, 1)
    assert previous_month(date(1, 2, 1)) == date(1, 1, 1)
