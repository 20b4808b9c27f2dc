from flask import Blueprint, current_app, jsonify, request
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import login_user, logout_user, login_required
from sqlalchemy.exc import IntegrityError

from models import db, User
from schemas import LoginRequest, SignupRequest, parse
from services.errors import HabitError

auth = Blueprint('auth', __name__, url_prefix='/auth')


@auth.errorhandler(HabitError)
def handle_auth_error(error):
    return jsonify(error.to_dict()), error.status_code


@auth.route('/signup', methods=['POST'])
def signup():
    data = parse(SignupRequest, request.get_json(silent=True))
    email = data.email.lower()
    if User.query.filter_by(email=email).first():
        return jsonify({'success': False, 'error': 'Email already registered'}), 409

    new_user = User(email=email, password_hash=generate_password_hash(data.password, method='scrypt'))
    db.session.add(new_user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'success': False, 'error': 'Email already registered'}), 409
    login_user(new_user, remember=True)
    current_app.logger.info("User %s signed up", new_user.public_id)
    return jsonify({'success': True, 'message': 'User created successfully'}), 201


@auth.route('/login', methods=['POST'])
def login():
    data = parse(LoginRequest, request.get_json(silent=True))
    user = User.query.filter_by(email=data.email.lower()).first()
    if user and check_password_hash(user.password_hash, data.password):
        login_user(user, remember=True)
        return jsonify({'success': True, 'message': 'Login successful'})
    return jsonify({'success': False, 'error': 'Invalid email or password'}), 401


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})
