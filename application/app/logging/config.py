"""
Logging Configuration for the Singlespine OTP service (FastAPI)
Local stream/file output with optional Slack alerting for errors.
"""

# Settings
from app.config.settings import SinglespineConfigs
configs = SinglespineConfigs()

class LoggingConfig:
    """Logging configuration resolved from settings"""

    # Core settings
    AUDIT_LOGGING_ENABLED = configs.AUDIT_LOGGING_ENABLED
    CAPTURE_RESPONSE_BODY = configs.CAPTURE_RESPONSE_BODY
    LOG_LEVEL = configs.LOG_LEVEL

    # Output
    LOG_TO_FILE = configs.LOG_TO_FILE
    LOG_DIR = configs.LOG_DIR

    # Alerting
    SLACK_WEBHOOK_URL = configs.SLACK_WEBHOOK_URL

    @classmethod
    def is_valid_config(cls):
        """Validate configuration - only check the log directory when file output is on"""
        if cls.LOG_TO_FILE and not cls.LOG_DIR:
            return False, "LOG_TO_FILE is enabled but LOG_DIR is empty"
        return True, "Configuration is valid"
