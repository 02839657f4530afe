import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


DEBUG = _as_bool(os.getenv("DEBUG", "false"))

# Database
MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "coding_jojo")

# Security
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
ADMIN_SIGNUP_KEY = os.getenv("ADMIN_SIGNUP_KEY", "")

CORS_ORIGINS = _as_list(os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:8000,https://codingjojo.com",
))

# Email (SendGrid)
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "")
SENDER_EMAIL = os.getenv("SENDER_EMAIL", "no-reply@codingjojo.com")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@codingjojo.com")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# SMS: "mock" only logs the message, "sns" publishes through AWS SNS
SMS_PROVIDER = os.getenv("SMS_PROVIDER", "mock")
AWS_REGION = os.getenv("AWS_REGION", "eu-west-1")
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
SMS_SENDER_ID = os.getenv("SMS_SENDER_ID", "CodingJojo")

# Uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))

# One-time codes
CODE_TTL_MINUTES = int(os.getenv("CODE_TTL_MINUTES", "10"))
MAX_CODE_ATTEMPTS = int(os.getenv("MAX_CODE_ATTEMPTS", "3"))
CODE_RESEND_COOLDOWN_SECONDS = int(os.getenv(
    "CODE_RESEND_COOLDOWN_SECONDS", "30" if DEBUG else "120"
))

# Revision conflicts are retried this many times before giving up
MUTATION_RETRY_LIMIT = int(os.getenv("MUTATION_RETRY_LIMIT", "3"))

QUALIFYING_CERTIFICATE_TYPES = _as_list(os.getenv(
    "QUALIFYING_CERTIFICATE_TYPES",
    "high_school_diploma,associate_degree,bachelors_degree,masters_degree,"
    "phd_doctorate,professional_certification,coding_bootcamp,"
    "industry_certification,teaching_qualification,technical_diploma",
))
