"""WSGI entry point for production deployment."""
import os
from dotenv import load_dotenv
from attendance_tracker import create_app

load_dotenv()

app = create_app(os.getenv('FLASK_ENV', 'production'))
