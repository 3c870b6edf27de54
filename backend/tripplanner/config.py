import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

# Load .env from the package directory or the backend directory
env_path = Path(__file__).parent / '.env'
if not env_path.exists():
    env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)


def _env_bool(name, default="false"):
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DEBUG = _env_bool('FLASK_DEBUG')
    PORT = int(os.environ.get('PORT', 3001))

    # Tokens
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET') or 'your-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)
    GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID')

    # Storage. Without a reachable MONGO_URI the API runs on in-memory stores.
    MONGO_URI = os.getenv('MONGO_URI')
    MONGO_DB_NAME = os.getenv('MONGO_DB_NAME', 'tripplanner')
    MONGO_TIMEOUT_MS = int(os.getenv('MONGO_TIMEOUT_MS', 3000))

    # Currency conversion
    RAPIDAPI_KEY = os.environ.get('RAPIDAPI_KEY')
    RAPIDAPI_HOST = os.environ.get('RAPIDAPI_HOST', 'currency-converter5.p.rapidapi.com')
    RATE_API_TIMEOUT = float(os.environ.get('RATE_API_TIMEOUT', 5))
    RATE_CACHE_TTL = int(os.environ.get('RATE_CACHE_TTL', 3600))  # seconds
    PIVOT_CURRENCY = os.environ.get('PIVOT_CURRENCY', 'EUR').upper()

    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get('CORS_ORIGINS', 'http://localhost:5173,http://localhost:8080').split(',')
        if o.strip()
    ]

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    LOG_JSON = _env_bool('LOG_JSON', 'true')


class TestConfig(Config):
    TESTING = True
    DEBUG = False
    SECRET_KEY = 'test-secret'
    JWT_SECRET_KEY = 'test-jwt-secret-with-enough-length-for-hs256'
    GOOGLE_CLIENT_ID = None
    MONGO_URI = None
    RAPIDAPI_KEY = None
    LOG_JSON = False
    LOG_LEVEL = 'WARNING'
