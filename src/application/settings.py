"""Application settings configuration."""

import logging
import os
import sys

from neuroglia.hosting.abstractions import ApplicationSettings
from pydantic_settings import SettingsConfigDict

from application.exceptions import ConfigurationException
from domain.enums import FieldNamingContract


class Settings(ApplicationSettings):
    """Application settings for the AWS instance creator worker."""

    # Debugging Configuration
    debug: bool = False
    environment: str = "development"  # development, production
    log_level: str = "INFO"

    # Application Configuration
    app_name: str = "AWS Instance Creator"
    app_version: str = "1.0.0"
    service_name: str = "aws-instance-creator"

    # Message Channel Configuration
    message_channel_url: str | None = None  # Required in production
    default_message_channel_url: str = "redis://localhost:6379/0"  # Development fallback
    create_topic: str = "instance.create.aws"  # Outcomes go to <create_topic>.done / <create_topic>.error

    # Request Schema Configuration
    field_naming_contract: FieldNamingContract = FieldNamingContract.AWS

    # Provisioning Configuration
    terminate_on_provisioning_failure: bool = False  # Terminate instances created by failed requests

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    @property
    def done_topic(self) -> str:
        return f"{self.create_topic}.done"

    @property
    def error_topic(self) -> str:
        return f"{self.create_topic}.error"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def resolve_message_channel_url(self) -> str:
        """Return the message channel endpoint to connect to.

        Development deployments fall back to a local Redis when no endpoint is
        configured; production deployments refuse to start without one.

        Raises:
            ConfigurationException: If no endpoint is configured in production.
        """
        if self.message_channel_url:
            return self.message_channel_url
        if self.is_production:
            raise ConfigurationException("MESSAGE_CHANNEL_URL must be set in production")
        return self.default_message_channel_url


# Instantiate application settings
app_settings = Settings()


def configure_logging(log_level: str = "INFO") -> None:
    """Configure application-wide logging with support for console and file output.

    This function configures the root logger and sets appropriate levels for
    third-party libraries to reduce noise.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level = log_level.upper()

    # Get root logger and clear any existing handlers to prevent duplicates
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.handlers.clear()

    root_logger.setLevel(log_level)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    # Console handler (always enabled for cloud-native environments)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler, only if LOG_FILE is set or a logs/ directory exists
    log_file = os.getenv("LOG_FILE", "logs/debug.log")
    if os.path.exists("logs") or os.getenv("LOG_FILE"):
        try:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except (OSError, PermissionError) as e:
            # Read-only filesystems in containers keep console logging only
            root_logger.warning(f"File logging disabled, unable to open {log_file}: {e}")

    third_party_loggers = [
        "boto3",
        "botocore",
        "urllib3",
        "s3transfer",
        "redis",
        "asyncio",
    ]

    for logger_name in third_party_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
