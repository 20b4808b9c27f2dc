import json
from datetime import date
from models import Habit, HabitCompletion
from conftest import ms


def create(client, name='Read', **extra):
    body = {'name': name, 'description': 'desc', 'color': 'blue',
            'createdDate': ms(2024, 1, 1), 'completedDates': []}
    body.update(extra)
    return client.post('/habits', json=body)


# Anonymous callers use the file store

def test_anonymous_create_writes_file(client, habits_file):
    response = create(client, completedDates=[ms(2024, 3, 5, 20), ms(2024, 3, 5, 8)])
    assert response.status_code == 201
    assert response.json['success'] is True
    assert response.json['data']['completedDates'] == [ms(2024, 3, 5)]

    data = json.loads(habits_file.read_text())
    assert data['habits'][0]['name'] == 'Read'
    assert data['habits'][0]['color'] == '#3b82f6'
    assert Habit.query.count() == 0


def test_anonymous_toggle_round_trip(client, habits_file):
    create(client)
    response = client.patch('/habits', json={'habitName': 'Read', 'date': ms(2024, 3, 5, 14)})
    assert response.status_code == 200
    assert response.json == {'success': True, 'completed': True}

    response = client.patch('/habits', json={'habitName': 'Read', 'date': ms(2024, 3, 5, 1)})
    assert response.json == {'success': True, 'completed': False}
    assert json.loads(habits_file.read_text())['habits'][0]['completedDates'] == []


def test_anonymous_delete(client, habits_file):
    create(client)
    response = client.delete('/habits', json={'habitName': 'Read'})
    assert response.status_code == 200
    assert json.loads(habits_file.read_text())['habits'] == []

    response = client.patch('/habits', json={'habitName': 'Read', 'date': ms(2024, 3, 5)})
    assert response.status_code == 404
    assert response.json == {'success': False, 'error': "Habit 'Read' not found"}


def test_list_requires_identity(client):
    response = client.get('/habits')
    assert response.status_code == 401
    assert response.json['success'] is False

    response = client.get('/habits/calendar?year=2024&month=3')
    assert response.status_code == 401


def test_validation_errors(client):
    response = client.post('/habits', json={'description': 'no name'})
    assert response.status_code == 400
    assert response.json['success'] is False
    assert 'name' in response.json['error']

    response = client.patch('/habits', json={'habitName': 'Read'})
    assert response.status_code == 400

    response = client.patch('/habits', data='not json', content_type='text/plain')
    assert response.status_code == 400

    response = client.delete('/habits', json={})
    assert response.status_code == 400


def test_duplicate_create(client):
    create(client)
    response = create(client)
    assert response.status_code == 409
    assert response.json['success'] is False


def test_storage_error_is_reported(client, habits_file):
    habits_file.parent.mkdir(parents=True)
    habits_file.write_text('{broken')
    response = create(client)
    assert response.status_code == 500
    assert response.json['success'] is False


def test_create_rejects_unrepresentable_dates(client, habits_file):
    for extra in ({'completedDates': [1e20]}, {'createdDate': 1e20},
                  {'completedDates': [float('inf')]}, {'createdDate': -1e20}):
        response = create(client, **extra)
        assert response.status_code == 400
        assert response.json['success'] is False
    assert not habits_file.exists()


def test_malformed_habit_entries_are_reported(client, habits_file):
    habits_file.parent.mkdir(parents=True)
    habits_file.write_text(json.dumps({'habits': [{'name': 'Read', 'completedDates': ['x']}]}))
    response = client.patch('/habits', json={'habitName': 'Read', 'date': ms(2024, 3, 5)})
    assert response.status_code == 500
    assert response.json['success'] is False

    habits_file.write_text(json.dumps({'habits': ['oops']}))
    response = create(client)
    assert response.status_code == 500
    assert response.json['success'] is False


# Authenticated callers use the relational store

def test_authenticated_flow(auth_client, habits_file):
    client, user = auth_client
    assert create(client, 'Read').status_code == 201
    assert create(client, 'Run', color='mauve').status_code == 201
    assert not habits_file.exists()

    response = client.get('/habits')
    assert response.status_code == 200
    habits = response.json['habits']
    assert [h['name'] for h in habits] == ['Read', 'Run']
    assert habits[1]['color'] == 'indigo'
    assert isinstance(habits[0]['id'], int)

    for name in ('Read', 'Run'):
        client.patch('/habits', json={'habitName': name, 'date': ms(2024, 3, 5, 9)})
    client.patch('/habits', json={'habitName': 'Read', 'date': ms(2024, 3, 31, 23, 45)})

    response = client.get('/habits/calendar?year=2024&month=3')
    assert response.status_code == 200
    grid = response.json['calendar']
    assert grid['leadingBlanks'] == 5
    assert grid['monthName'] == 'March'
    assert grid['cells'][5 + 4]['habits'] == ['Read', 'Run']
    assert grid['cells'][5 + 30]['habits'] == ['Read']


def test_authenticated_delete_cascades(auth_client):
    client, user = auth_client
    create(client, 'Read', completedDates=[ms(2024, 3, 5), ms(2024, 3, 6)])
    assert HabitCompletion.query.count() == 2

    response = client.delete('/habits', json={'habitName': 'Read'})
    assert response.status_code == 200
    assert HabitCompletion.query.count() == 0
    assert Habit.query.count() == 0

    response = client.patch('/habits', json={'habitName': 'Read', 'date': ms(2024, 3, 5)})
    assert response.status_code == 404
    response = client.delete('/habits', json={'habitName': 'Read'})
    assert response.status_code == 404


def test_authenticated_toggle_writes_completion_rows(auth_client):
    client, user = auth_client
    create(client)
    client.patch('/habits', json={'habitName': 'Read', 'date': ms(2024, 3, 5, 12)})
    completion = HabitCompletion.query.one()
    assert completion.date == date(2024, 3, 5)
    assert completion.habit.owner.id == user.id


def test_calendar_validation(auth_client):
    client, _ = auth_client
    assert client.get('/habits/calendar').status_code == 400
    assert client.get('/habits/calendar?year=2024&month=13').status_code == 400
