from flask import current_app, jsonify, request
from flask_login import current_user
from werkzeug.exceptions import HTTPException

from . import habits_bp
from schemas import HabitCreate, HabitDelete, HabitToggle, parse
from services.calendar_service import aggregate
from services.errors import HabitError, Unauthorized, ValidationError
from services.habit_store import select_store
from services.records import OwnerContext
from services.toggle_service import CompletionToggleService


def owner_context():
    if current_user.is_authenticated:
        return OwnerContext(authenticated=True, owner_key=current_user.id)
    return OwnerContext.anonymous()


def require_owner():
    owner = owner_context()
    if not owner.authenticated:
        raise Unauthorized('Authentication required')
    return owner


def service_for(owner):
    return CompletionToggleService(select_store(owner, current_app.config['HABITS_FILE']))


@habits_bp.errorhandler(HabitError)
def handle_habit_error(error):
    if error.status_code >= 500:
        current_app.logger.error("Habit request failed: %s", error.message)
    else:
        current_app.logger.info("Habit request rejected (%d): %s", error.status_code, error.message)
    return jsonify(error.to_dict()), error.status_code


@habits_bp.errorhandler(Exception)
def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return jsonify({'success': False, 'error': error.description}), error.code
    current_app.logger.exception("Unhandled error in habit request")
    return jsonify({'success': False, 'error': 'Internal server error'}), 500


@habits_bp.route('/habits', methods=['GET'])
def list_habits():
    owner = require_owner()
    habits = service_for(owner).list_habits(owner)
    return jsonify({'success': True, 'habits': [h.to_dict() for h in habits]})


@habits_bp.route('/habits', methods=['POST'])
def add_habit():
    payload = parse(HabitCreate, request.get_json(silent=True))
    owner = owner_context()
    record = service_for(owner).create_habit(owner, payload.to_draft())
    return jsonify({'success': True, 'data': record.to_dict()}), 201


@habits_bp.route('/habits', methods=['PATCH'])
def toggle_habit():
    payload = parse(HabitToggle, request.get_json(silent=True))
    owner = owner_context()
    result = service_for(owner).toggle(owner, payload.habit_name, payload.date)
    return jsonify(result.to_dict())


@habits_bp.route('/habits', methods=['DELETE'])
def delete_habit():
    payload = parse(HabitDelete, request.get_json(silent=True))
    owner = owner_context()
    service_for(owner).delete_habit(owner, payload.habit_name)
    return jsonify({'success': True})


@habits_bp.route('/habits/calendar', methods=['GET'])
def habit_calendar():
    owner = require_owner()
    year = request.args.get('year', type=int)
    month = request.args.get('month', type=int)
    if year is None or month is None or not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise ValidationError('year and month (1-12) are required')

    habits = service_for(owner).list_habits(owner)
    grid = aggregate(habits, year, month, first_weekday=current_app.config['CALENDAR_FIRST_WEEKDAY'])
    return jsonify({'success': True, 'calendar': grid.to_dict()})
