import os

from starlette.config import Config
from starlette.datastructures import CommaSeparatedStrings, Secret

# If APP_CONFIG is set, use that as the path to the .env file, or default to .env
env_file = os.getenv("APP_CONFIG", ".env")
if "APP_CONFIG" in os.environ and not os.path.isfile(env_file):
    raise FileNotFoundError(f"The configuration file specified in APP_CONFIG or the default .env does not exist: {env_file}")

config = Config(env_file)

# JWT Configuration
JWT_SECRET_KEY: Secret = config("JWT_SECRET_KEY", cast=Secret)
JWT_ALGORITHM: str = config("JWT_ALGORITHM", default="HS256")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = config(
    "JWT_ACCESS_TOKEN_EXPIRE_MINUTES", cast=int, default=60
)
JWT_ISSUER: str = config("JWT_ISSUER", default="https://api.journeycraft.app")
JWT_AUDIENCE: str = config("JWT_AUDIENCE", default="https://journeycraft.app")

# Application Configuration
CORS_ORIGINS: CommaSeparatedStrings = config(
    "CORS_ORIGINS",
    cast=CommaSeparatedStrings,
    default=CommaSeparatedStrings(["http://localhost:5173"]),
)
DEBUG: bool = config("DEBUG", cast=bool, default=False)

# AWS SES Configuration
# Without explicit keys boto3 falls back to its default credential chain
AWS_REGION: str = config("AWS_REGION", default="us-east-2")
AWS_ACCESS_KEY: Secret | None = config("AWS_ACCESS_KEY", cast=Secret, default=None)
AWS_SECRET_ACCESS_KEY: Secret | None = config(
    "AWS_SECRET_ACCESS_KEY", cast=Secret, default=None
)
AWS_SES_SENDER_EMAIL: str = config(
    "AWS_SES_SENDER_EMAIL", default="no-reply@journeycraft.app"
)

# OTP Configuration
# 0 keeps a code valid until it is consumed or replaced
OTP_LIFETIME_MINUTES: int = config("OTP_LIFETIME_MINUTES", cast=int, default=30)

# Database Configuration
DATABASE_URL: str = config("DATABASE_URL", default="sqlite:///./journeycraft.db")

# Cron Job Configuration
EXPIRED_OTP_CLEANUP_INTERVAL_SECONDS: int = config(
    "EXPIRED_OTP_CLEANUP_INTERVAL_SECONDS", cast=int, default=60
)

# Location Service Configuration
NOMINATIM_BASE_URL: str = config(
    "NOMINATIM_BASE_URL", default="https://nominatim.openstreetmap.org"
)
OVERPASS_API_URL: str = config(
    "OVERPASS_API_URL", default="https://overpass-api.de/api/interpreter"
)
GEOCODER_USER_AGENT: str = config(
    "GEOCODER_USER_AGENT", default="journeycraft-api/0.1 (+https://journeycraft.app)"
)
HTTP_TIMEOUT_SECONDS: float = config("HTTP_TIMEOUT_SECONDS", cast=float, default=10.0)
NEARBY_RADIUS_METERS: int = config("NEARBY_RADIUS_METERS", cast=int, default=1500)
NEARBY_RESULT_LIMIT: int = config("NEARBY_RESULT_LIMIT", cast=int, default=20)
