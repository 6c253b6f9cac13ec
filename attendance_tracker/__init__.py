"""QR Attendance Tracker - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'QR Attendance Tracker',
            'version': '1.0.0'
        })

    return app


def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from attendance_tracker.api.sessions import sessions_bp
    from attendance_tracker.api.attendance import attendance_bp
    from attendance_tracker.api.subjects import subjects_bp
    from attendance_tracker.api.users import users_bp

    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(subjects_bp, url_prefix='/api/subjects')
    app.register_blueprint(users_bp, url_prefix='/api/users')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from attendance_tracker.utils.errors import AttendanceError
    from attendance_tracker.utils.helpers import handle_error
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.exception('Unhandled error: %s', error)
        return handle_error('Internal server error', 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'error': True,
            'message': 'Token has expired',
            'status_code': 401
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Invalid token',
            'status_code': 401
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Authorization token required',
            'status_code': 401
        }), 401


def setup_logging(app: Flask) -> None:
    """Setup application logging.

    ``app.logger`` is the ``attendance_tracker`` logger, so the service
    module loggers propagate into the same handlers.
    """
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    app.logger.setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        app.logger.info('QR Attendance Tracker startup')


def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models so metadata is complete for create_all and migrations
        from attendance_tracker.models import (  # noqa: F401
            User, Subject, AttendanceSession, AttendanceRecord
        )


def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with demo faculty, students and subjects."""
        from attendance_tracker.services.seed_service import SeedService

        summary = SeedService.seed_all()
        click.echo(
            f"Seeded {summary['faculty']} faculty, {summary['students']} students "
            f"and {summary['subjects']} subjects."
        )

    @app.cli.command('clear-sessions')
    @click.confirmation_option(prompt='Delete ALL sessions and attendance records?')
    def clear_sessions():
        """Delete every session and attendance record."""
        from attendance_tracker.services import get_repository

        repository = get_repository()
        records = repository.delete_all_attendance()
        sessions = repository.delete_all_sessions()
        repository.commit()

        app.logger.warning('Administrative cleanup removed %s sessions and %s records',
                           sessions, records)
        click.echo(f'Deleted {sessions} sessions and {records} attendance records.')

    @app.cli.command('clear-attendance')
    @click.confirmation_option(prompt='Delete ALL attendance records?')
    def clear_attendance():
        """Delete attendance records and reset session counters."""
        from attendance_tracker.services import get_repository

        repository = get_repository()
        records = repository.delete_all_attendance()
        repository.reset_session_counters()
        repository.commit()

        app.logger.warning('Administrative cleanup removed %s attendance records', records)
        click.echo(f'Deleted {records} attendance records.')
