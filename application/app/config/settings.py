import os
from dotenv import load_dotenv
load_dotenv()

class SinglespineConfigs:
    def __init__(self):

        # Environment settings
        self.APPLICATION_ENVIRONMENT = os.getenv("APPLICATION_ENVIRONMENT", "UAT")
        self.APP_NAME = os.getenv('APP_NAME', 'singlespine-otp')
        self.APP_VERSION = os.getenv('APP_VERSION', '1.0.0')
        self.DEBUG = os.getenv("DEBUG", "true").lower() == "true"
        self.ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "")

        # Redis settings
        self.REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
        self.REDIS_CACHE_DB = int(os.getenv("REDIS_CACHE_DB", "3"))

        # OTP settings
        self.OTP_STORE_BACKEND = os.getenv("OTP_STORE_BACKEND", "memory").lower()
        self.OTP_EXPIRY_SECONDS = int(os.getenv("OTP_EXPIRY_SECONDS", "600"))
        self.OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "3"))
        self.OTP_RESEND_COOLDOWN_SECONDS = int(os.getenv("OTP_RESEND_COOLDOWN_SECONDS", "120"))
        self.OTP_SWEEP_INTERVAL_SECONDS = int(os.getenv("OTP_SWEEP_INTERVAL_SECONDS", "1800"))

        # SMS settings
        self.SMS_PROVIDER = os.getenv("SMS_PROVIDER", "twilio").lower()
        self.SMS_TIMEOUT_SECONDS = int(os.getenv("SMS_TIMEOUT_SECONDS", "10"))
        self.TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
        self.TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
        self.TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER", "")
        self.TWILIO_BASE_URL = os.getenv("TWILIO_BASE_URL", "https://api.twilio.com/2010-04-01")

        # Sentry settings
        self.SENTRY_ENABLED = os.getenv("SENTRY_ENABLED", "false").lower() == "true"
        self.SENTRY_DSN = os.getenv("SENTRY_DSN", "")
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
        self.SENTRY_RELEASE = os.getenv("SENTRY_RELEASE", "singlespine-otp@1.0.0")
        self.SENTRY_TRACES_SAMPLE_RATE = os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")
        self.SENTRY_PROFILES_SAMPLE_RATE = os.getenv("SENTRY_PROFILES_SAMPLE_RATE", "0.1")

        # Logging settings
        self.AUDIT_LOGGING_ENABLED = os.getenv("AUDIT_LOGGING_ENABLED", "false").lower() == "true"
        self.CAPTURE_RESPONSE_BODY = os.getenv("CAPTURE_RESPONSE_BODY", "false").lower() == "true"
        self.LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() == "true"
        self.LOG_DIR = os.getenv("LOG_DIR", "logs")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL", "")
