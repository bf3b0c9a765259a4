"""
Django settings for lead_relay project.
"""
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'dev-secret-key-change-in-production')
DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'
ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')
APP_ENV = os.getenv('APP_ENV', 'development')

TESTING = (
    os.getenv('USE_SQLITE_FOR_TESTS', '').lower() == 'true'
    or any('pytest' in arg for arg in sys.argv)
    or 'pytest' in sys.modules
    or bool(os.getenv('PYTEST_CURRENT_TEST'))
)

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'leads',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.gzip.GZipMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'lead_relay.urls'

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

WSGI_APPLICATION = 'lead_relay.wsgi.application'
ASGI_APPLICATION = 'lead_relay.asgi.application'

# Database configuration
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.getenv('DB_NAME', 'lead_relay'),
        'USER': os.getenv('DB_USER', 'postgres'),
        'PASSWORD': os.getenv('DB_PASSWORD', 'postgres'),
        'HOST': os.getenv('DB_HOST', 'localhost'),
        'PORT': os.getenv('DB_PORT', '5432'),
    }
}

# Use SQLite for tests to avoid requiring a running PostgreSQL server
if TESTING:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.getenv('SQLITE_NAME', ':memory:'),
        }
    }

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Celery configuration
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TASK_ALWAYS_EAGER = os.getenv('CELERY_TASK_ALWAYS_EAGER', str(TESTING)).lower() == 'true'

if TESTING:
    CELERY_BROKER_URL = 'memory://'
    CELERY_RESULT_BACKEND = 'cache+memory://'

CELERY_BEAT_SCHEDULE = {
    'sweep-pending-leads': {
        'task': 'leads.tasks.sweep_pending_leads',
        'schedule': float(os.getenv('PENDING_SWEEP_INTERVAL', '300')),
    },
}

# Lead forwarding configuration
WHATSAPP_CATEGORIES = [
    'Broadcast Services',
    'Whatsapp Business Api Services',
    'Whatsapp Marketing Services',
    'Bulk Whatsapp Messaging Services',
]

if os.getenv('WHATSAPP_CATEGORIES'):
    WHATSAPP_CATEGORIES = [
        category.strip()
        for category in os.getenv('WHATSAPP_CATEGORIES').split(',')
        if category.strip()
    ]

LEAD_FORWARDING = {
    'MARKETING_API_URL': os.getenv(
        'MARKETING_API_URL',
        'https://crm-leads-service.example.com/api/leads/webapi/MARKETING_ID'
    ),
    'WHATSAPP_API_URL': os.getenv(
        'WHATSAPP_API_URL',
        'https://crm-leads-service.example.com/api/leads/webapi/WHATSAPP_ID'
    ),
    'WHATSAPP_CATEGORIES': tuple(WHATSAPP_CATEGORIES),
    'TIMEOUT': float(os.getenv('FORWARDING_TIMEOUT', '30')),
    'BULK_CONCURRENCY': int(os.getenv('BULK_FORWARD_CONCURRENCY', '10')),
    'BULK_MAX_LEADS': 100,
    'PENDING_SWEEP_AGE': int(os.getenv('PENDING_SWEEP_AGE', '300')),
}

# Rate limiting
RATE_LIMIT_WINDOW_MS = int(os.getenv('RATE_LIMIT_WINDOW_MS', str(15 * 60 * 1000)))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv('RATE_LIMIT_MAX_REQUESTS', '1000'))
TRUST_PROXY = (
    os.getenv('TRUST_PROXY', '').lower() == 'true'
    or APP_ENV == 'production'
)

# Logging configuration
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'leads': {
            'handlers': ['console'],
            'level': os.getenv('LOG_LEVEL', 'DEBUG'),
            'propagate': False,
        },
    },
}

# REST Framework configuration
REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
        'rest_framework.parsers.FormParser',
    ],
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_THROTTLE_CLASSES': [
        'leads.throttling.ClientIPRateThrottle',
    ],
    'UNAUTHENTICATED_USER': None,
}
