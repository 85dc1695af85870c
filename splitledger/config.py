# splitledger/config.py
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the package directory or the project root
env_path = Path(__file__).parent / '.env'
if not env_path.exists():
    env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


def _csv(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    DEBUG = os.environ.get('DEBUG', 'false').lower() in ('1', 'true', 'yes')
    TESTING = False
    PORT = int(os.environ.get('PORT', 5000))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    # Comma separated; "*" allows any origin
    CORS_ORIGINS = _csv(os.environ.get('CORS_ORIGINS', '*'))

    # "default": payer alone carries an expense with no participants
    # "reject": such an expense is a 400
    EMPTY_PARTICIPANTS = os.environ.get('EMPTY_PARTICIPANTS', 'default')


class TestingConfig(Config):
    TESTING = True
    LOG_LEVEL = 'DEBUG'
    EMPTY_PARTICIPANTS = 'default'
