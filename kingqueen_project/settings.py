"""
Django project settings for the King & Queen contest
====================================================

Configuration file for the Django project. Contains database settings,
security configuration, installed apps, middleware, vote policy and
deployment settings. Every value can be overridden from the environment
or a .env file (python-decouple).

Security features enabled:
- Secure cookie settings
- Security headers (HSTS, X-Frame-Options, nosniff)
- CORS restricted to the voting client origins
"""

import os
from pathlib import Path
from decouple import Csv, config  # pyright: ignore[reportMissingImports]
import dj_database_url  # pyright: ignore[reportMissingImports]

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = config('SECRET_KEY', default='django-insecure-dev-key-change-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'corsheaders',
    'contest',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',  # Clickjacking protection
    'contest.middleware.SecurityHeadersMiddleware',  # Custom security headers
]

ROOT_URLCONF = 'kingqueen_project.urls'

# Only the Django admin renders templates
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
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

WSGI_APPLICATION = 'kingqueen_project.wsgi.application'

# Database configuration
# Default: SQLite (development)
# Production: PostgreSQL (set DATABASE_URL environment variable)
DATABASE_URL = config('DATABASE_URL', default='')

if DATABASE_URL:
    # Production: Use PostgreSQL via dj-database-url
    DATABASES = {
        'default': dj_database_url.config(
            default=DATABASE_URL,
            conn_max_age=600,
            conn_health_checks=True,
        )
    }
else:
    # Development: Use SQLite
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.path.join(BASE_DIR, 'db.sqlite3'),
        }
    }

# Internationalization
LANGUAGE_CODE = 'en'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Static files (Django admin assets) and media (candidate photos)
STATIC_URL = '/static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')
MEDIA_URL = config('MEDIA_URL', default='/uploads/')
MEDIA_ROOT = config('MEDIA_ROOT', default=os.path.join(BASE_DIR, 'public', 'uploads'))

# Check if we are in a build process (dummy secret key)
IS_BUILD_PROCESS = SECRET_KEY == 'dummy-key-for-build'

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        # Production: whitenoise with manifest, after collectstatic
        'BACKEND': (
            'django.contrib.staticfiles.storage.StaticFilesStorage'
            if DEBUG or IS_BUILD_PROCESS
            else 'whitenoise.storage.CompressedManifestStaticFilesStorage'
        ),
    },
}

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ============================================================================
# VOTE POLICY
# ============================================================================

# Reject ballots without a device fingerprint. Turn off for the
# IP + cookie only mode.
VOTE_REQUIRE_FINGERPRINT = config('VOTE_REQUIRE_FINGERPRINT', default=True, cast=bool)

# X-Forwarded-For is client-controlled unless a proxy overwrites it.
TRUST_FORWARDED_FOR = config('TRUST_FORWARDED_FOR', default=True, cast=bool)

# Voter cookie is HTTPS-only in production
VOTER_COOKIE_SECURE = config('VOTER_COOKIE_SECURE', default=not DEBUG, cast=bool)

# Candidate photo uploads
PHOTO_MAX_UPLOAD_SIZE = config('PHOTO_MAX_UPLOAD_SIZE', default=8 * 1024 * 1024, cast=int)  # 8MB
DATA_UPLOAD_MAX_MEMORY_SIZE = PHOTO_MAX_UPLOAD_SIZE + 1024 * 1024

# ============================================================================
# ADMIN AUTHENTICATION
# ============================================================================

JWT_SECRET = config('JWT_SECRET', default=SECRET_KEY)
JWT_EXPIRES_HOURS = config('JWT_EXPIRES_HOURS', default=24, cast=int)

# Default admin created by `manage.py seed_contest`
SEED_ADMIN_EMAIL = config('SEED_ADMIN_EMAIL', default='admin@example.com')
SEED_ADMIN_PASSWORD = config('SEED_ADMIN_PASSWORD', default='admin123')

# ============================================================================
# SECURITY SETTINGS (CRITICAL FOR PRODUCTION)
# ============================================================================

# Trust the X-Forwarded-Proto header coming from the proxy
SECURE_PROXY_SSL_HEADER = config('SECURE_PROXY_SSL_HEADER', default=None)
if SECURE_PROXY_SSL_HEADER:
    SECURE_PROXY_SSL_HEADER = tuple(SECURE_PROXY_SSL_HEADER.split(','))

if not DEBUG:
    # Force HTTPS
    SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)
    SESSION_COOKIE_SECURE = config('SESSION_COOKIE_SECURE', default=True, cast=bool)
    CSRF_COOKIE_SECURE = config('CSRF_COOKIE_SECURE', default=True, cast=bool)
else:
    SESSION_COOKIE_SECURE = config('SESSION_COOKIE_SECURE', default=False, cast=bool)
    CSRF_COOKIE_SECURE = config('CSRF_COOKIE_SECURE', default=False, cast=bool)

SESSION_COOKIE_HTTPONLY = config('SESSION_COOKIE_HTTPONLY', default=True, cast=bool)
CSRF_COOKIE_HTTPONLY = config('CSRF_COOKIE_HTTPONLY', default=True, cast=bool)

# Security Headers
SECURE_HSTS_SECONDS = config('SECURE_HSTS_SECONDS', default=0 if DEBUG else 31536000, cast=int)
SECURE_HSTS_INCLUDE_SUBDOMAINS = config('SECURE_HSTS_INCLUDE_SUBDOMAINS', default=True, cast=bool)
SECURE_HSTS_PRELOAD = config('SECURE_HSTS_PRELOAD', default=False, cast=bool)
X_FRAME_OPTIONS = config('X_FRAME_OPTIONS', default='DENY')  # Prevent clickjacking

# CORS configuration: the voting client runs on its own origin and sends
# the voter cookie
CORS_ALLOWED_ORIGINS = config(
    'CORS_ALLOWED_ORIGINS',
    default='http://localhost:5173,http://127.0.0.1:5173',
    cast=Csv()
)
CORS_ALLOW_CREDENTIALS = True

# CSRF Trusted Origins (Django admin forms)
CSRF_TRUSTED_ORIGINS = config(
    'CSRF_TRUSTED_ORIGINS',
    default='http://localhost:8000,http://127.0.0.1:8000',
    cast=Csv()
)

# Logging configuration
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '[{levelname}] {asctime} {module} - {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'level': 'INFO' if not DEBUG else 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose' if not DEBUG else 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'contest': {
            'handlers': ['console'],
            'level': config('CONTEST_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
    },
}
