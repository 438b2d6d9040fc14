from .base import *

DEBUG = True

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

CSRF_TRUSTED_ORIGINS = os.getenv("CSRF_TRUSTED_ORIGINS", "http://localhost,http://127.0.0.1").split(",")

DATABASES["default"]["NAME"] = os.getenv("DB_NAME", "entitlements_dev")
DATABASES["default"]["USER"] = os.getenv("DB_USER", "postgres")
DATABASES["default"]["PASSWORD"] = os.getenv("DB_PASSWORD", "postgres")
DATABASES["default"]["HOST"] = os.getenv("DB_HOST", "localhost")
DATABASES["default"]["PORT"] = os.getenv("DB_PORT", "5432")
