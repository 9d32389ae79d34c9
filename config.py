import os
from dotenv import load_dotenv

load_dotenv()

REQUIRED_VARS = [
    'SECRET_KEY',
    'SQLALCHEMY_DATABASE_URI',
    'GEMINI_API_KEY',
    'GOOGLE_CLIENT_ID',
    'GOOGLE_CLIENT_SECRET',
    'GOOGLE_DISCOVERY_URL'
]

OPTIONAL_VARS = [
    'REDIS_URL',
    'MAIL_USERNAME',
    'MAIL_PASSWORD',
    'OWNER_EMAIL',
    'PAYPAL_CLIENT_ID',
    'PAYPAL_CLIENT_SECRET',
    'REPLICATE_API_TOKEN',
    'APP_URL'
]


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI")
    SQLALCHEMY_TRACK_MODIFICATIONS = os.getenv("SQLALCHEMY_TRACK_MODIFICATIONS") == "True"
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
        'pool_size': 10,
        'max_overflow': 20,
    }

    # Server-side sessions
    SESSION_TYPE = 'redis'
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379')
    SESSION_PERMANENT = False
    SESSION_KEY_PREFIX = 'nexusai:'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Mail
    MAIL_SERVER = os.getenv('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.getenv('MAIL_PORT', '587'))
    MAIL_USE_TLS = MAIL_PORT != 465
    MAIL_USE_SSL = MAIL_PORT == 465
    MAIL_USERNAME = os.getenv('MAIL_USERNAME')
    MAIL_PASSWORD = os.getenv('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.getenv('MAIL_USERNAME')
    OWNER_EMAIL = os.getenv('OWNER_EMAIL')

    # Google OAuth
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_DISCOVERY_URL = os.getenv("GOOGLE_DISCOVERY_URL")

    # Gemini
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

    # Replicate
    REPLICATE_API_TOKEN = os.getenv("REPLICATE_API_TOKEN")
    REPLICATE_IMAGE_MODEL = os.getenv("REPLICATE_IMAGE_MODEL", "minimax/image-01")
    REPLICATE_VIDEO_MODEL = os.getenv(
        "REPLICATE_VIDEO_MODEL", "3a7e6cdc3f95192092fa47346a73c28d1373d1499f3b62cdea25efe355823afb"
    )
    REPLICATE_AUDIO_MODEL = os.getenv("REPLICATE_AUDIO_MODEL", "meta/musicgen")
    REPLICATE_POLL_INTERVAL = float(os.getenv("REPLICATE_POLL_INTERVAL", "5"))

    # PayPal
    PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID")
    PAYPAL_CLIENT_SECRET = os.getenv("PAYPAL_CLIENT_SECRET")
    PAYPAL_MODE = os.getenv("PAYPAL_MODE", "sandbox")
    APP_URL = os.getenv("APP_URL", "http://localhost:5000")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    # Plain signed-cookie sessions so the test client can set identities
    SESSION_TYPE = None
    SESSION_COOKIE_SECURE = False
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = 'noreply@nexusai.test'
    OWNER_EMAIL = 'owner@nexusai.test'
    GEMINI_API_KEY = 'test-gemini-key'
    REPLICATE_API_TOKEN = 'test-replicate-token'
    REPLICATE_POLL_INTERVAL = 0
    PAYPAL_CLIENT_ID = 'test-client'
    PAYPAL_CLIENT_SECRET = 'test-secret'
    APP_URL = 'http://localhost'


def missing_env_vars(names=None, environ=None):
    """Return the names from `names` that are unset or empty"""
    environ = os.environ if environ is None else environ
    return [name for name in (names or REQUIRED_VARS) if not environ.get(name)]
