"""Base configuration shared by every environment."""
import os
from datetime import timedelta


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day;50 per hour"
    ATTENDANCE_MARK_RATE_LIMIT = "10 per minute"

    # Sessions
    QR_CODE_EXPIRY_MINUTES = int(os.environ.get('QR_CODE_EXPIRY_MINUTES', 5))
    SESSION_PERIOD_MINUTES = 50  # standard class duration
    SESSION_MAX_EXTENSION_MINUTES = 60
    DEFAULT_GEOFENCE_RADIUS = 50  # meters

    # Attendance
    LATE_THRESHOLD_MINUTES = 10
    REQUIRE_SCAN_LOCATION = os.environ.get('REQUIRE_SCAN_LOCATION', 'false').lower() == 'true'

    # QR image rendering
    QR_IMAGE_BOX_SIZE = 10
    QR_IMAGE_BORDER = 2

    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
