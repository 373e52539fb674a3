import os
from pathlib import Path
import dj_database_url
from dotenv import load_dotenv

# A local .env fills in anything the environment does not set
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

# =============================================================================
# SECURITY SETTINGS
# =============================================================================

# Always set DJANGO_SECRET_KEY outside local development
SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-only-key-change-in-production-7f3k2q9x')

DEBUG = os.environ.get('DJANGO_DEBUG', 'False').lower() == 'true'

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')
    if host.strip()
]

# For CSRF protection behind the panel's public hostname
CSRF_TRUSTED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get('DJANGO_CSRF_TRUSTED_ORIGINS', '').split(',')
    if origin.strip()
]

# =============================================================================
# CLOUDINARY (optional media storage for offer images)
# =============================================================================

_cloud_name = os.environ.get('CLOUDINARY_CLOUD_NAME', '').strip()
_api_key = os.environ.get('CLOUDINARY_API_KEY', '').strip()
_api_secret = os.environ.get('CLOUDINARY_API_SECRET', '').strip()
USE_CLOUDINARY = bool(_cloud_name and _api_key and _api_secret)

# =============================================================================
# APPLICATION DEFINITION
# =============================================================================

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'accounts',
    'offers',
    'domains',
]

if USE_CLOUDINARY:
    INSTALLED_APPS += ['cloudinary_storage', 'cloudinary']

MIDDLEWARE = [
    'core.middleware.ExceptionLoggingMiddleware',  # Log exceptions
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'core.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'core.wsgi.application'

# =============================================================================
# DATABASE
# =============================================================================

# DATABASE_URL (PostgreSQL) in production, SQLite file otherwise
DATABASES = {
    'default': dj_database_url.config(
        default=f'sqlite:///{BASE_DIR / "db.sqlite3"}',
        conn_max_age=600,
        conn_health_checks=True,
    )
}

# =============================================================================
# AUTHENTICATION
# =============================================================================

AUTH_USER_MODEL = 'accounts.AppUser'

# bcrypt first so stored hashes use it; the rest only verify legacy hashes
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.BCryptSHA256PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2PasswordHasher',
]

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {
            'min_length': 6,
        }
    },
]

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
LOGIN_URL = 'login'
LOGIN_REDIRECT_URL = '/admin/'
LOGOUT_REDIRECT_URL = 'login'

# =============================================================================
# INTERNATIONALIZATION
# =============================================================================

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# =============================================================================
# STATIC AND MEDIA FILES
# =============================================================================

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Offer images are served from /uploads/ like the original panel
MEDIA_URL = '/uploads/'
MEDIA_ROOT = Path(os.environ.get('MEDIA_ROOT', BASE_DIR / 'uploads'))

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedStaticFilesStorage',
    },
}

if USE_CLOUDINARY:
    import cloudinary

    CLOUDINARY_STORAGE = {
        'CLOUD_NAME': _cloud_name,
        'API_KEY': _api_key,
        'API_SECRET': _api_secret,
    }
    cloudinary.config(
        cloud_name=_cloud_name,
        api_key=_api_key,
        api_secret=_api_secret,
        secure=True
    )
    STORAGES['default'] = {
        'BACKEND': 'cloudinary_storage.storage.MediaCloudinaryStorage',
    }

OFFER_IMAGE_MAX_BYTES = 5 * 1024 * 1024

# =============================================================================
# INTEGRATIONS
# =============================================================================

BINOM_BASE_URL = os.environ.get('BINOM_BASE_URL', 'https://your-binom-tracker.com')
BINOM_TIMEOUT = int(os.environ.get('BINOM_TIMEOUT', '30'))

GOOGLE_SHEETS_SPREADSHEET_ID = os.environ.get('GOOGLE_SHEETS_SPREADSHEET_ID', '')
GOOGLE_SHEETS_SERVICE_ACCOUNT_EMAIL = os.environ.get('GOOGLE_SHEETS_SERVICE_ACCOUNT_EMAIL', '')
GOOGLE_SHEETS_PRIVATE_KEY = os.environ.get('GOOGLE_SHEETS_PRIVATE_KEY', '')

# Pause between domains in the Cloudflare setup flow, in seconds (min, max).
# The API flow sleeps inside the request, so serve it with a long worker timeout:
#   gunicorn core.wsgi --timeout 1800
# or run large batches with `manage.py provision_domains` instead.
CLOUDFLARE_SETUP_DELAY = (
    int(os.environ.get('CLOUDFLARE_SETUP_DELAY_MIN', '60')),
    int(os.environ.get('CLOUDFLARE_SETUP_DELAY_MAX', '180')),
)

# Used by the provision_domains management command when no option is given
CLOUDFLARE_EMAIL = os.environ.get('CLOUDFLARE_EMAIL', '')
CLOUDFLARE_API_KEY = os.environ.get('CLOUDFLARE_API_KEY', '')
NAMECHEAP_API_USER = os.environ.get('NAMECHEAP_API_USER', '')
NAMECHEAP_API_KEY = os.environ.get('NAMECHEAP_API_KEY', '')
NAMECHEAP_USERNAME = os.environ.get('NAMECHEAP_USERNAME', '')
NAMECHEAP_CLIENT_IP = os.environ.get('NAMECHEAP_CLIENT_IP', '')

MAX_ACTIVE_DOMAINS = int(os.environ.get('MAX_ACTIVE_DOMAINS', '10'))

# =============================================================================
# PRODUCTION HARDENING
# =============================================================================

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

if not DEBUG:
    SECURE_SSL_REDIRECT = os.environ.get('DJANGO_SECURE_SSL_REDIRECT', 'True').lower() == 'true'

    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True

    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True

    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'

    SESSION_COOKIE_AGE = 60 * 60 * 24 * 14

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get('DJANGO_LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': True,
        },
        **{
            name: {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False}
            for name in ('django.request', 'core', 'accounts', 'offers', 'domains')
        },
    },
}
