"""
Logging configuration for Atehna OMS (FastAPI)
JSON lines to local files, optional stdout mirroring and audit records.
"""

# Settings
from atehna_oms.config.settings import AtehnaConfigs
configs = AtehnaConfigs()

class LoggingConfig:
    """Logging configuration resolved once from the environment"""

    AUDIT_LOGGING_ENABLED = configs.AUDIT_LOGGING_ENABLED
    CAPTURE_RESPONSE_BODY = configs.CAPTURE_RESPONSE_BODY

    LOG_DIR = configs.LOG_DIR
    LOG_TO_STDOUT = configs.LOG_TO_STDOUT

    APPLICATION_ENVIRONMENT = configs.APPLICATION_ENVIRONMENT
    SERVICE_NAME = configs.APP_NAME

    @classmethod
    def is_valid_config(cls):
        """Validate configuration - the log directory must be set"""
        if not cls.LOG_DIR:
            return False, "LOG_DIR is empty"
        return True, "Configuration is valid"
