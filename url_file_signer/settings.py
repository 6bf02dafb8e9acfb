"""
Django settings for url_file_signer project.
"""

import os
from pathlib import Path
import environ

# Initialize environment variables
env = environ.Env(
    DEBUG=(bool, True),
)

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Read .env file if it exists
environ.Env.read_env(os.path.join(BASE_DIR, '.env'))

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env('DEBUG')

# SECURITY WARNING: keep the secret key used in production secret!
# SECRET_KEY MUST be set via environment variable in ALL non-local environments
import warnings

SECRET_KEY = env('SECRET_KEY', default='')

# Only allow empty/insecure SECRET_KEY in local DEBUG mode
if not SECRET_KEY or SECRET_KEY.startswith('django-insecure'):
    if DEBUG and not env.bool('STAGING', default=False):
        # Local development only - generate a random key for this session
        import secrets
        SECRET_KEY = secrets.token_urlsafe(50)
        warnings.warn(
            "SECRET_KEY not set - using random key for this session. "
            "Set SECRET_KEY in .env for persistent sessions."
        )
    else:
        # Staging and production MUST have SECRET_KEY set
        raise ValueError(
            "SECRET_KEY environment variable is required in staging/production! "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(50))\""
        )

# Application definition
INSTALLED_APPS = [
    'signing.apps.SigningConfig',
]

USE_TZ = True
TIME_ZONE = 'UTC'

# ==============================================================================
# FILE SIGNER CONFIGURATION
# ==============================================================================
# Key for URL signatures. Generate with:
#   python -c "import secrets; print(secrets.token_urlsafe(50))"
FILE_SIGNER_KEY = env('FILE_SIGNER_KEY', default='')

if not FILE_SIGNER_KEY:
    if DEBUG and not env.bool('STAGING', default=False):
        # Local development only - derive from SECRET_KEY
        import hashlib
        FILE_SIGNER_KEY = hashlib.sha256(f"file-signer:{SECRET_KEY}".encode()).hexdigest()
        warnings.warn(
            "FILE_SIGNER_KEY not set - deriving from SECRET_KEY for local dev. "
            "Signed URLs will not survive a SECRET_KEY change."
        )
    else:
        raise ValueError(
            "FILE_SIGNER_KEY environment variable is required in staging/production!"
        )

FILE_SIGNER = {
    # Scheme, host and optional path prefix of every signed URL
    'BASE_URL': env('FILE_SIGNER_BASE_URL', default='http://localhost:8000'),
    'SIGNATURE_KEY': FILE_SIGNER_KEY,
    'DEFAULT_TTL_MINUTES': env.int('FILE_SIGNER_DEFAULT_TTL_MINUTES', default=30),
    'MAX_TTL_MINUTES': env.int('FILE_SIGNER_MAX_TTL_MINUTES', default=60 * 24 * 7),
    # Query alias of the domain parameter. Empty disables domain checking.
    'DOMAIN_PARAM': env('FILE_SIGNER_DOMAIN_PARAM', default=''),
    'QUERY_PARAMS': {
        'parameters': 'op',
        'separator': 'os',
        'expiration': 'oe',
        'signature': 'oh',
    },
    # Parameters allowed in file names: name -> alias
    'FILE_PARAMETERS': {
        'version': 'v',
        'size': 's',
        'compression': 'c',
    },
}

# ==============================================================================
# LOGGING CONFIGURATION
# ==============================================================================
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'level': 'DEBUG' if DEBUG else 'INFO',
            'class': 'logging.StreamHandler',
            'formatter': 'simple'
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
        'signing': {
            'handlers': ['console'],
            'level': env('FILE_SIGNER_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
    },
}
