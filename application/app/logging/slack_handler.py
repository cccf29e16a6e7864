import logging
import requests
from datetime import datetime, timezone

from app.logging.config import LoggingConfig

# Settings
from app.config.settings import SinglespineConfigs
configs = SinglespineConfigs()


class SlackErrorHandler(logging.Handler):
    """Sends ERROR and CRITICAL logs to Slack"""
    def __init__(self, webhook: str | None = None):
        super().__init__(level=logging.ERROR)
        self.webhook = webhook if webhook is not None else LoggingConfig.SLACK_WEBHOOK_URL
        self.enabled = bool(self.webhook)

    def build_text(self, record) -> str:
        env = configs.APPLICATION_ENVIRONMENT.upper()
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()

        lines = [
            f":mag: Monitor {env}-MONITOR Please investigate the issue.",
            "",
            "Error Details",
            f"- :clock1: Timestamp: {ts}",
            f"- :triangular_flag_on_post: Level: **{record.levelname}**",
            f"- :warning: Logger: {record.name}",
            f"- :satellite: Service: {configs.APP_NAME}",
            f"- :globe_with_meridians: Environment: {env}",
            f"- :file_folder: Module: {getattr(record, 'module', '')}",
            f"- :pushpin: Function: {getattr(record, 'funcName', '')}",
            f"- :straight_ruler: Line Number: {getattr(record, 'lineno', '')}",
            "- :memo: Message:",
            "",
            "```" + str(record.getMessage()) + "```",
        ]
        return "\n".join(lines)

    def emit(self, record):
        if not self.enabled:
            return
        try:
            requests.post(self.webhook, json={"text": self.build_text(record)}, timeout=2)
        except Exception:
            self.handleError(record)


# Export a singleton handler instance for reuse
slack_handler = SlackErrorHandler()
