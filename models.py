import uuid
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from datetime import datetime

db = SQLAlchemy()


def generate_public_id():
    return uuid.uuid4().hex


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(32), unique=True, nullable=False, default=generate_public_id)
    email = db.Column(db.String(254), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)
    date_joined = db.Column(db.DateTime, default=datetime.utcnow)

    habits = db.relationship('Habit', backref='owner', lazy=True, order_by='Habit.created_at')


class Habit(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    color = db.Column(db.String(7), nullable=False, default='#6b7280') # hex code
    created_at = db.Column(db.DateTime, default=datetime.now) # server local time, like day keys
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    completions = db.relationship('HabitCompletion', backref='habit', lazy=True,
                                  cascade="all, delete-orphan", order_by='HabitCompletion.date')

    __table_args__ = (db.UniqueConstraint('user_id', 'name', name='_user_habit_name_uc'),)


class HabitCompletion(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    habit_id = db.Column(db.Integer, db.ForeignKey('habit.id'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False) # The date for which it counts
    completed_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('habit_id', 'date', name='_habit_date_uc'),)
