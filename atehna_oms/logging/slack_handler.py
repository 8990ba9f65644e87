import os
import logging
import requests
from datetime import datetime, timezone

from atehna_oms.config.settings import AtehnaConfigs
configs = AtehnaConfigs()


class SlackErrorHandler(logging.Handler):
    """Sends ERROR and CRITICAL logs to Slack"""
    def __init__(self):
        super().__init__(level=logging.ERROR)
        self.webhook = configs.SLACK_WEBHOOK_URL
        self.enabled = bool(self.webhook) and configs.APPLICATION_ENVIRONMENT.lower() == 'local'

    def emit(self, record):
        if not self.enabled:
            return
        try:
            env = configs.APPLICATION_ENVIRONMENT.upper()
            ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()

            lines = []
            lines.append(f":mag: {env} - {configs.APP_NAME} alert")
            lines.append("")
            lines.append(f"- :clock1: Timestamp: {ts}")
            lines.append(f"- :triangular_flag_on_post: Level: **{record.levelname}**")
            lines.append(f"- :warning: Logger: {record.name}")
            lines.append(f"- :file_folder: Module: {getattr(record, 'module', '')}")
            lines.append(f"- :pushpin: Function: {getattr(record, 'funcName', '')}")
            lines.append(f"- :straight_ruler: Line Number: {getattr(record, 'lineno', '')}")
            lines.append("")
            lines.append("```" + str(record.getMessage()) + "```")

            requests.post(self.webhook, json={"text": "\n".join(lines)}, timeout=2)
        except requests.RequestException:
            self.handleError(record)


slack_handler = SlackErrorHandler()
