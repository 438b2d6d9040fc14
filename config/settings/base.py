import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(key: str, default: str = "False") -> bool:
    val = os.getenv(key, str(default))
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def env_list(key: str, default: str = "") -> list[str]:
    raw = os.getenv(key, default)
    return [x.strip() for x in str(raw).split(",") if x and x.strip()]


SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-secret-key")

DEBUG = _env_bool("DEBUG", "True")

ALLOWED_HOSTS = env_list(
    "ALLOWED_HOSTS",
    "localhost,127.0.0.1,0.0.0.0,[::1]",
)

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "ninja",
    "corsheaders",
    "api",
    "apps.logs.apps.LogsConfig",
    "apps.catalog.apps.CatalogConfig",
    "apps.payments.apps.PaymentsConfig",
    "apps.entitlements.apps.EntitlementsConfig",
    "apps.delivery.apps.DeliveryConfig",
    "apps.notification.apps.NotificationConfig",
]

MIDDLEWARE = [
    "apps.logs.middleware.RequestLoggingMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("DB_NAME"),
        "USER": os.getenv("DB_USER"),
        "PASSWORD": os.getenv("DB_PASSWORD"),
        "HOST": os.getenv("DB_HOST"),
        "PORT": os.getenv("DB_PORT"),
        'CONN_MAX_AGE': 60,
        'CONN_HEALTH_CHECKS': True,
        'OPTIONS': {
            'connect_timeout': 10,
            'options': '-c statement_timeout=30000',
        },
    }
}


AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
AUTHENTICATION_BACKENDS = [
    'django.contrib.auth.backends.ModelBackend',
]

# Django-Ninja settings
NINJA_PAGINATION_CLASS = 'ninja.pagination.LimitOffsetPagination'
NINJA_PAGINATION_PER_PAGE = 20
NINJA_MAX_PER_PAGE_SIZE = 100
NINJA_PAGINATION_MAX_LIMIT = 100

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
APP_ENV = os.getenv("APP_ENV", "local")

JWT_SECRET = os.getenv("JWT_SECRET", SECRET_KEY)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ACCESS_TTL_MIN = int(os.getenv("JWT_ACCESS_TTL_MIN", "60"))

# =========================
# PAYMENT PROVIDERS
# =========================
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")

MTN_MOMO_SUBSCRIPTION_KEY = os.getenv("MTN_MOMO_SUBSCRIPTION_KEY", "")
MTN_MOMO_API_USER = os.getenv("MTN_MOMO_API_USER", "")
MTN_MOMO_API_KEY = os.getenv("MTN_MOMO_API_KEY", "")
MTN_MOMO_ENVIRONMENT = os.getenv("MTN_MOMO_ENVIRONMENT", "sandbox")
MTN_MOMO_CALLBACK_URL = os.getenv("MTN_MOMO_CALLBACK_URL", "")
# Sandbox only accepts EUR; production uses the local currency.
MTN_MOMO_CURRENCY = os.getenv("MTN_MOMO_CURRENCY", "EUR")
MTN_MOMO_COUNTRY_CODE = os.getenv("MTN_MOMO_COUNTRY_CODE", "256")
MOMO_CALLBACK_SECRET = os.getenv("MOMO_CALLBACK_SECRET", "")

PAYMENTS = {
    "CARD_WEBHOOK_REQUERY": _env_bool("CARD_WEBHOOK_REQUERY", "False"),
    "PROVIDER_TIMEOUT": int(os.getenv("PAYMENT_PROVIDER_TIMEOUT", "30")),
    "POLL_MIN_AGE_SECONDS": int(os.getenv("PAYMENT_POLL_MIN_AGE_SECONDS", "60")),
}

# =========================
# CONTENT DELIVERY
# =========================
VIDEO_URL_SIGNING_KEY = os.getenv("VIDEO_URL_SIGNING_KEY", SECRET_KEY)
VIDEO_DELIVERY_BASE_URL = os.getenv("VIDEO_DELIVERY_BASE_URL", "https://media.example.com/video")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(message)s"},
        "verbose": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
        "db": {
            "class": "apps.logs.handlers.DatabaseLogHandler",
            "formatter": "plain",
            "level": "INFO",
        },
    },
    "loggers": {
        "app": {
            "handlers": ["db", "console"],
            "level": "INFO",
            "propagate": False,
        },
        "payment": {
            "handlers": ["db", "console"],
            "level": "INFO",
            "propagate": False,
        },
        "delivery": {
            "handlers": ["db", "console"],
            "level": "INFO",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "django.request": {
            "handlers": ["db", "console"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}
# =========================
# CORS / CSRF
# =========================
CORS_ALLOWED_ORIGINS = env_list("CORS_ALLOWED_ORIGINS", "")
CSRF_TRUSTED_ORIGINS = env_list("CSRF_TRUSTED_ORIGINS", "")
CORS_ALLOW_CREDENTIALS = True
