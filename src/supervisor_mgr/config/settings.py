"""Application runtime settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class LoggingConfig(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(default="WARNING", description="Log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    json_format: bool = Field(default=False, description="Use JSON log format")

    class Config:
        env_prefix = "SUPERVISOR_MGR_LOG_"


class RPCConfig(BaseSettings):
    """XML-RPC client settings applied to every configured server."""

    timeout: float = Field(
        default=30.0, description="Connect and response timeout in seconds"
    )

    class Config:
        env_prefix = "SUPERVISOR_MGR_RPC_"


class Settings(BaseSettings):
    """Main application settings."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    rpc: RPCConfig = Field(default_factory=RPCConfig)

    config: str = Field(
        default="config.yaml", description="Server list configuration file"
    )

    class Config:
        env_prefix = "SUPERVISOR_MGR_"


def load_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings()
