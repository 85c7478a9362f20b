"""Configuration manager for persistent settings stored as JSON."""

import json
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import (
    ConfigurationError,
    FileSystemError,
    InvalidConfigError,
    MissingConfigError,
    SocketMailError,
)
from .logging import get_logger, log_call
from .paths import get_config_path

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    """Pydantic model for the SMTP endpoint and session behaviour."""

    host: str = "smtp.gmail.com"
    port: int = 465
    username: str = ""
    password: str = ""
    client_identifier: str = "localhost"
    reply_mode: Literal["lenient", "strict"] = "lenient"
    connect_timeout: float = 30.0  # in seconds
    read_timeout: float = 30.0  # in seconds


class MessageSettings(BaseModel):
    """Pydantic model for message composition defaults."""

    charset: str = "UTF-8"
    transfer_encoding: str = "7bit"
    default_subject: str = "No subject"
    from_address: str = ""
    from_name: str = ""


class LoggingConfig(BaseModel):
    """Pydantic model for logging settings."""

    log_level: str = "INFO"
    verbose: bool = True


class AppConfig(BaseModel):
    """Pydantic model for overall application configuration."""

    version: str = "0.1.0"
    smtp: SMTPSettings = Field(default_factory=SMTPSettings)
    message: MessageSettings = Field(default_factory=MessageSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages persistent application configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        self.path = Path(config_path) if config_path else get_config_path()
        self.config = self._load_or_create_config()
        logger.info(f"Configuration loaded from {self.path}")

    def _load_or_create_config(self) -> AppConfig:
        """Load configuration from file or create default if not present."""

        if not self.path.exists():
            logger.info("No config file found, creating default configuration.")
            config = AppConfig()
            self._save_config(config)
            return config

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = AppConfig(**data)
            logger.debug("Configuration successfully loaded and validated.")
            return config

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise InvalidConfigError(
                f"Configuration file is not valid JSON: {str(e)}"
            ) from e
        except ValidationError as e:
            logger.error(f"Failed to validate config file: {e}")
            raise InvalidConfigError(
                f"Configuration data does not match expected schema: {str(e)}"
            ) from e
        except OSError as e:
            raise FileSystemError(f"Failed to read configuration file: {str(e)}") from e

    def _save_config(self, config: Optional[AppConfig] = None):
        """Save the current configuration to file."""

        config = config or self.config

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)
            logger.debug("Configuration successfully saved.")
        except OSError as e:
            raise FileSystemError(
                f"Failed to write configuration file: {str(e)}"
            ) from e

    @log_call
    def set_config(self, key_path: str, value: Any, persist: bool = True):
        """Set a configuration value using dot-separated key path."""

        try:
            keys = key_path.split(".")
            updated = self.config.model_copy(deep=True)
            obj = updated

            for key in keys[:-1]:
                if not hasattr(obj, key):
                    raise MissingConfigError(
                        f"Configuration path '{key_path}' is invalid: '{key}' not found"
                    )
                obj = getattr(obj, key)

            if not hasattr(obj, keys[-1]):
                raise MissingConfigError(
                    f"Configuration key '{keys[-1]}' does not exist in path '{key_path}'"
                )

            setattr(obj, keys[-1], value)
            self.config = AppConfig(**updated.model_dump())

            if persist:
                self._save_config()

            logger.info(f"Config key '{key_path}' updated.")

        except SocketMailError:
            raise
        except ValidationError as e:
            raise InvalidConfigError(
                f"Invalid value for configuration key '{key_path}': {str(e)}"
            ) from e
        except Exception as e:
            raise ConfigurationError(
                f"Failed to set configuration key '{key_path}': {str(e)}"
            ) from e

    def mail_defaults(self) -> Dict[str, Any]:
        """Keyword defaults for building a MailConfiguration."""

        smtp = self.config.smtp
        message = self.config.message
        defaults: Dict[str, Any] = {
            "host": smtp.host,
            "port": smtp.port,
            "username": smtp.username,
            "password": smtp.password,
            "subject": message.default_subject,
            "charset": message.charset,
            "transfer_encoding": message.transfer_encoding,
            "verbose_logging": self.config.logging.verbose,
        }

        if message.from_address:
            defaults["from_"] = (
                (message.from_name, message.from_address)
                if message.from_name
                else message.from_address
            )

        return defaults
