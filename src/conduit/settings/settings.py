"""Application settings configuration."""

from pydantic_settings import BaseSettings, CliSettingsSource, SettingsConfigDict
from typing import List, Optional, Tuple, Type

from ..agents.graph.chains import ExecutionPolicy


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_name: str = "Conduit Flow Engine"
    app_version: str = "1.0.0"

    # Completion service
    openai_api_key: Optional[str] = None  # None switches agents to placeholder responses
    llm_api_base: str = "https://api.openai.com/v1"
    llm_timeout: float = 120.0  # Per-request timeout in seconds
    reasoning_model_prefixes: List[str] = ["gpt-5", "o1", "o3", "o4"]

    # Execution
    execution_policy: ExecutionPolicy = ExecutionPolicy.DIRECT_FANOUT
    placeholder_chunk_size: int = 10
    placeholder_delay: float = 0.05

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Path to log file (None disables file logging)
    log_file_level: str = "DEBUG"  # Log level for file output
    log_show_path: bool = True  # Show file path in console logs
    log_show_time: bool = True  # Show timestamp in console logs
    log_rich_tracebacks: bool = True  # Enable rich tracebacks with syntax highlighting
    log_file_rotation: str = "10 MB"  # Log file rotation size
    log_file_retention: str = "7 days"  # Log file retention period
    log_file_compression: str = "zip"  # Log file compression format

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000


class CliSettings(Settings):
    """Settings for the command line runner.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. .env file
    4. Default values
    """

    flow: str = ""  # Path to a flow exported as JSON
    prompt: str = ""
    stream: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple:
        """Customize the priority of settings sources."""
        return (
            init_settings,
            CliSettingsSource(
                settings_cls,
                cli_parse_args=True,
                cli_prog_name="conduit",
            ),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
