import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=False)

# Application environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = ENVIRONMENT == "development"
TESTING = os.getenv("TESTING", "false").lower() == "true"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Application settings
APP_NAME = "Fantasy Letters API"
APP_VERSION = "1.0.0"
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5173")

# Database settings
DATABASE_URL = os.getenv("DATABASE_URL")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))

# Stripe settings
STRIPE_API_KEY = os.getenv("STRIPE_API_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
PAYMENT_PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_PROVIDER_TIMEOUT_SECONDS", "30"))

# Letter generation (OpenAI)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
LETTER_MAX_TOKENS = int(os.getenv("LETTER_MAX_TOKENS", "400"))
LETTER_TEMPERATURE = float(os.getenv("LETTER_TEMPERATURE", "0.7"))
LETTER_GENERATION_TIMEOUT_SECONDS = float(os.getenv("LETTER_GENERATION_TIMEOUT_SECONDS", "60"))

# Free tier: digital replies per account per UTC day
DAILY_FREE_DIGITAL_REPLIES = int(os.getenv("DAILY_FREE_DIGITAL_REPLIES", "2"))

# Descope settings
DESCOPE_PROJECT_ID = os.getenv("DESCOPE_PROJECT_ID", "")
DESCOPE_JWT_LEEWAY = int(os.getenv("DESCOPE_JWT_LEEWAY", "60"))  # seconds of clock-skew tolerance

# Internal endpoints (external cron)
INTERNAL_SECRET = os.getenv("INTERNAL_SECRET", "")

# Image uploads (creature portraits, scanned letters)
AWS_REGION = os.getenv("AWS_REGION", "us-east-2")
LETTER_IMAGES_BUCKET = os.getenv("LETTER_IMAGES_BUCKET", "fantasy-letters-images")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
