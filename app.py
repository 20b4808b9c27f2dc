import os
import calendar
import logging
import click
from flask import Flask, jsonify
from flask_login import LoginManager
from flask_migrate import Migrate, stamp
from dotenv import load_dotenv
from models import db, User
from auth import auth
from routes import habits_bp

load_dotenv()

migrate = Migrate()
login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'error': 'Authentication required'}), 401


def create_app(test_config=None):
    app = Flask(__name__)

    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev_key_change_in_prod')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('SQLALCHEMY_DATABASE_URI', 'sqlite:///db.sqlite3')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['HABITS_FILE'] = os.environ.get('HABITS_FILE', os.path.join(app.instance_path, 'habits.json'))
    app.config['CALENDAR_FIRST_WEEKDAY'] = int(os.environ.get('CALENDAR_FIRST_WEEKDAY', calendar.SUNDAY))
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    app.register_blueprint(auth)
    app.register_blueprint(habits_bp)

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables first.')
    def init_db(drop):
        """Create all tables and stamp the migration head."""
        if drop:
            click.echo("Dropping all tables...")
            db.drop_all()
        click.echo("Creating all tables...")
        db.create_all()
        # Stamp so flask-migrate thinks we are up to date
        stamp()
        click.echo("Database initialized and stamped.")

    return app


app = create_app()

if __name__ == '__main__':
    app.run(debug=True)
