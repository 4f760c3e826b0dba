import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

ENVIRONMENT = os.getenv('ENVIRONMENT', 'local')

# Debug the environment variable
DEBUG = False if ENVIRONMENT == 'production' else True

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY') or ('' if ENVIRONMENT == 'production' else 'puzzle-planner-local-dev-key')

CSRF_TRUSTED_ORIGINS = [
    origin.strip() for origin in os.environ.get(
        'CSRF_TRUSTED_ORIGINS', 'http://localhost:8000,http://127.0.0.1:8000,http://localhost:3000'
    ).split(',') if origin.strip()
]
ALLOWED_HOSTS = [
    host.strip() for host in os.environ.get('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if host.strip()
]

CSRF_COOKIE_SECURE = ENVIRONMENT == 'production'

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'corsheaders',
    'projects',
    'chat',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'PLANNER.urls'

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

WSGI_APPLICATION = 'PLANNER.wsgi.application'
ASGI_APPLICATION = 'PLANNER.asgi.application'

# Database configuration
# Set USE_POSTGRES_DB=True in environment to use PostgreSQL, otherwise uses SQLite
USE_POSTGRES_DB = os.environ.get('USE_POSTGRES_DB', 'False').lower() == 'true'

if USE_POSTGRES_DB:
    # PostgreSQL for production/staging
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('POSTGRES_DB', 'puzzle_planner'),
            'USER': os.environ.get('POSTGRES_USER', 'postgres'),
            'PASSWORD': os.environ.get('POSTGRES_PASSWORD', ''),
            'HOST': os.environ.get('POSTGRES_HOST', 'localhost'),
            'PORT': os.environ.get('POSTGRES_PORT', '5432'),
            'ATOMIC_REQUESTS': False,
        }
    }
else:
    # SQLite for local development
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

APPEND_SLASH = False

# Static files (CSS, JavaScript, Images)
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# CORS settings
CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOWED_ORIGINS = [
    origin.strip() for origin in os.environ.get(
        'CORS_ALLOWED_ORIGINS', 'http://localhost:8000,http://localhost:3000'
    ).split(',') if origin.strip()
]
CORS_ALLOW_CREDENTIALS = True

# Security settings
X_FRAME_OPTIONS = 'SAMEORIGIN'

# Authentication URLs
LOGIN_URL = '/admin/login/'

# Puzzle pieces
# When True, another user's piece or project is reported as not found (404) instead of forbidden (403).
PIECES_CONCEAL_FOREIGN_PROJECTS = os.environ.get('PIECES_CONCEAL_FOREIGN_PROJECTS', 'True').lower() == 'true'

# LLM configuration
ANTHROPIC_API_KEY = os.environ.get('ANTHROPIC_API_KEY', '')
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
LLM_DEFAULT_MODEL = os.environ.get('LLM_DEFAULT_MODEL', '')  # empty -> default_model from config/llm_models.json
LLM_MODELS_CONFIG = os.environ.get('LLM_MODELS_CONFIG', str(BASE_DIR / 'config' / 'llm_models.json'))
LLM_TEMPERATURE = float(os.environ.get('LLM_TEMPERATURE', 0.7) or 0.7)
LLM_MAX_TOKENS = int(os.environ.get('LLM_MAX_TOKENS', 4096) or 4096)

# Prompt templates (system.md + pieces/<piece_type>.md)
PROMPTS_DIR = os.environ.get('PROMPTS_DIR', str(BASE_DIR / 'factory' / 'prompts' / 'templates'))

# Logging Configuration
# Configure logging level and handlers via environment variables
LOGGING_LEVEL = os.environ.get('LOGGING_LEVEL', 'INFO')
LOGGING_FILE_PATH = os.environ.get('LOGGING_FILE_PATH', '')
LOGGING_ENABLE_CONSOLE = os.environ.get('LOGGING_ENABLE_CONSOLE', 'True').lower() == 'true'
LOGGING_ENABLE_EASYLOGS = os.environ.get('LOGGING_ENABLE_EASYLOGS', 'False').lower() == 'true'

# EasyLogs Configuration
EASYLOGS_API_KEY = os.environ.get('EASYLOGS_API_KEY', '')
EASYLOGS_API_URL = os.environ.get('EASYLOGS_API_URL', 'https://ingest.easylogs.co/logs')

# Build handlers dynamically based on configuration
logging_handlers = {}
root_handlers = []

# Console handler
if LOGGING_ENABLE_CONSOLE:
    logging_handlers['console'] = {
        'level': LOGGING_LEVEL,
        'class': 'logging.StreamHandler',
        'formatter': 'verbose'
    }
    root_handlers.append('console')

# File handler (if configured)
if LOGGING_FILE_PATH:
    logging_handlers['file'] = {
        'level': LOGGING_LEVEL,
        'class': 'logging.FileHandler',
        'filename': LOGGING_FILE_PATH,
        'formatter': 'verbose'
    }
    root_handlers.append('file')

# EasyLogs handler (if enabled and a key is configured)
if LOGGING_ENABLE_EASYLOGS and EASYLOGS_API_KEY:
    logging_handlers['easylogs'] = {
        'level': LOGGING_LEVEL,
        'class': 'utils.easylogs.DjangoEasyLogsHandler',
        'formatter': 'simple',
        'api_key': EASYLOGS_API_KEY,
        'api_url': EASYLOGS_API_URL,
        'environment': ENVIRONMENT,
    }
    root_handlers.append('easylogs')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '[{levelname}] {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
        'simple': {
            'format': '[{levelname}] {module}: {message}',
            'style': '{',
        },
    },
    'handlers': logging_handlers,
    'root': {
        'handlers': root_handlers,
        'level': LOGGING_LEVEL,
    },
    'loggers': {
        'django': {
            'handlers': root_handlers,
            'level': 'INFO',
            'propagate': False,
        },
        'projects': {
            'handlers': root_handlers,
            'level': 'INFO',
            'propagate': False,
        },
        'chat': {
            'handlers': root_handlers,
            'level': 'DEBUG',
            'propagate': False,
        },
        'factory': {
            'handlers': root_handlers,
            'level': 'DEBUG',
            'propagate': False,
        },
        # easylogs posts go through these
        'urllib3': {
            'handlers': root_handlers,
            'level': 'WARNING',
            'propagate': False,
        },
        'requests': {
            'handlers': root_handlers,
            'level': 'WARNING',
            'propagate': False,
        },
    },
}
