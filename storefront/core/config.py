import os
from decimal import Decimal

from dotenv import load_dotenv

# Values from a local .env fill in anything the environment leaves unset.
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
DB_ECHO = os.getenv("DB_ECHO", "false").strip().lower() in _TRUTHY
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

# Auth (JWT)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "") or "dev-only-change-me"
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24)))

# Checkout
DELIVERY_FEE = Decimal(os.getenv("DELIVERY_FEE", "5.00"))
# Tolerance accepted between client-side and server-side totals.
TOTALS_TOLERANCE = Decimal(os.getenv("TOTALS_TOLERANCE", "0.01"))

# Header a storefront client uses to name the domain it serves.
CLIENT_DOMAIN_HEADER = "x-client-domain"

# Super admin bootstrap
SUPER_ADMIN_USERNAME = os.getenv("SUPER_ADMIN_USERNAME", "superadmin").strip() or "superadmin"
SUPER_ADMIN_EMAIL = os.getenv("SUPER_ADMIN_EMAIL", "").strip() or None
SUPER_ADMIN_PASSWORD = os.getenv("SUPER_ADMIN_PASSWORD", "").strip()
