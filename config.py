# ==============================================================================
# config.py
# ------------------------------------------------------------------------------
# Configuration settings for the Flask application.
# Uses environment variables for sensitive data to keep them out of version control.
# ==============================================================================

import os
from dotenv import load_dotenv

# Determine the absolute path of the project directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from a .env file located in the project root
load_dotenv(os.path.join(basedir, '.env'))

class Config:
    """
    Base configuration class. Contains default settings that can be overridden
    by environment-specific configurations.
    """
    # --- Security ---
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-should-really-set-a-secret-key-in-your-env-file'

    # --- Database Configuration ---
    # SQLite file in the 'instance' folder unless DATABASE_URL says otherwise.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance/paycalc.db')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Import Configuration ---
    # Supplier and employee definitions are uploaded as JSON documents.
    ALLOWED_EXTENSIONS = {'.json'}

    # Maximum upload size (2 MB is plenty for a JSON import)
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024

    # --- Presentation ---
    # Used when the CURRENCY_SYMBOL setting has not been seeded yet.
    DEFAULT_CURRENCY_SYMBOL = os.environ.get('DEFAULT_CURRENCY_SYMBOL') or '$'

    # --- Logging ---
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
