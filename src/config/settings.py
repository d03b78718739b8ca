"""Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration with environment variable support,
validation, and clear defaults for the MongoDB MCP server. It serves as the single
source of truth for application settings across all modules.

Configuration can be overridden via environment variables (e.g., MONGODB_URI,
MONGODB_DATABASE) and is validated at startup so that a missing connection
string is reported before the first tool call.

Example:
    Loading and validating settings:
    >>> from src.config.settings import settings
    >>> settings.validate_configuration()
    >>> print(settings.default_sample_size)
    100
"""

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables with validation.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file (if present)
    3. Class defaults (lowest priority)

    All settings can be overridden via environment variables using uppercase names
    (e.g., MONGODB_URI=mongodb://custom:27017).

    Attributes:
        MongoDB Configuration settings for connection and pooling
        Tool Defaults for result limits and schema sampling
        Safety Configuration for operation restrictions
        Logging Configuration for log levels
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # MongoDB Configuration
    # ========================================================================

    mongodb_uri: str | None = Field(
        default=None,
        description=(
            "MongoDB connection URI with protocol, host, port, and authentication. "
            "Format: mongodb://[username:password@]host[:port][/database][?options]. "
            "Required; the server refuses to start without it."
        ),
    )

    mongodb_database: str | None = Field(
        default=None,
        description=(
            "Name of the MongoDB database to use for all operations. "
            "When unset, the default database named in the URI is used."
        ),
    )

    mongodb_timeout: int = Field(
        default=30,
        description="Server selection and connect timeout in seconds",
        ge=1,
        le=300,
    )

    mongodb_min_pool_size: int = Field(
        default=0,
        description="Minimum number of connections to maintain in the connection pool",
        ge=0,
    )

    mongodb_max_pool_size: int = Field(
        default=50,
        description="Maximum number of connections allowed in the connection pool",
        ge=1,
    )

    # ========================================================================
    # Tool Defaults
    # ========================================================================

    default_find_limit: int = Field(
        default=10,
        description="Number of documents returned by find when the caller gives no limit",
        ge=1,
    )

    default_sample_size: int = Field(
        default=100,
        description="Number of documents sampled by getSchema when the caller gives no size",
        ge=1,
    )

    max_result_limit: int = Field(
        default=1000,
        description=(
            "Upper bound for limit and sampleSize arguments. "
            "Protects against memory issues from large result sets"
        ),
        ge=1,
        le=100000,
    )

    # ========================================================================
    # Safety Configuration
    # ========================================================================

    read_only_mode: bool = Field(
        default=False,
        description=(
            "Reject write operations. Blocks insertOne, updateOne, deleteOne "
            "and aggregation pipelines containing $out or $merge"
        ),
    )

    # ========================================================================
    # Logging Configuration
    # ========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level for application logs. DEBUG provides most detail",
    )

    # ========================================================================
    # Field Validators
    # ========================================================================

    @field_validator("mongodb_database", mode="before")
    @classmethod
    def empty_database_is_default(cls, value: str | None) -> str | None:
        """Treat an empty MONGODB_DATABASE as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("mongodb_max_pool_size")
    @classmethod
    def validate_pool_sizes(cls, max_size: int, info) -> int:
        """Validate that max pool size is not below min pool size.

        Args:
            max_size: The maximum pool size to validate
            info: Validation context containing data

        Returns:
            The validated max pool size unchanged

        Raises:
            ValueError: If mongodb_min_pool_size > mongodb_max_pool_size
        """
        if "mongodb_min_pool_size" in info.data:
            min_size = info.data["mongodb_min_pool_size"]
            if min_size > max_size:
                raise ValueError(
                    f"mongodb_min_pool_size ({min_size}) cannot exceed "
                    f"mongodb_max_pool_size ({max_size})"
                )
        return max_size

    # ========================================================================
    # Helper Properties
    # ========================================================================

    @property
    def masked_mongodb_uri(self) -> str:
        """Connection URI with credentials hidden, safe for logs.

        Example:
            >>> Settings(mongodb_uri="mongodb://u:p@db:27017").masked_mongodb_uri
            'mongodb://***:***@db:27017'
        """
        if not self.mongodb_uri:
            return "<unset>"
        if "@" not in self.mongodb_uri:
            return self.mongodb_uri
        scheme, _, rest = self.mongodb_uri.partition("://")
        host_part = rest.rsplit("@", 1)[1]
        return f"{scheme}://***:***@{host_part}"

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def validate_configuration(self) -> None:
        """Validate complete application configuration at startup.

        Raises:
            ValueError: If configuration is invalid with descriptive message
                       indicating what needs to be fixed

        Example:
            >>> from src.config.settings import settings
            >>> try:
            ...     settings.validate_configuration()
            ... except ValueError as e:
            ...     print(f"Configuration error: {e}")
        """
        logger.info("Validating application configuration...")

        if not self.mongodb_uri:
            error_msg = "MONGODB_URI environment variable is required"
            logger.error(error_msg)
            raise ValueError(error_msg)

        if self.mongodb_min_pool_size > self.mongodb_max_pool_size:
            error_msg = (
                f"Invalid MongoDB pool configuration: "
                f"min_pool_size ({self.mongodb_min_pool_size}) > "
                f"max_pool_size ({self.mongodb_max_pool_size})"
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        if self.default_find_limit > self.max_result_limit:
            error_msg = (
                f"default_find_limit ({self.default_find_limit}) exceeds "
                f"max_result_limit ({self.max_result_limit})"
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        if self.default_sample_size > self.max_result_limit:
            error_msg = (
                f"default_sample_size ({self.default_sample_size}) exceeds "
                f"max_result_limit ({self.max_result_limit})"
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        logger.info("Configuration validation passed")

    def print_config(self) -> None:
        """Print current configuration in a formatted table (excluding credentials).

        Example:
            >>> from src.config.settings import settings
            >>> settings.print_config()
        """
        from rich.console import Console
        from rich.table import Table

        config_items = {
            "MongoDB URI": self.masked_mongodb_uri,
            "Database": self.mongodb_database or "<from URI>",
            "Timeout": f"{self.mongodb_timeout}s",
            "Connection Pool": f"{self.mongodb_min_pool_size}-{self.mongodb_max_pool_size}",
            "Default Find Limit": str(self.default_find_limit),
            "Default Sample Size": str(self.default_sample_size),
            "Max Result Limit": str(self.max_result_limit),
            "Read-Only Mode": "✓ Enabled" if self.read_only_mode else "✗ Disabled",
            "Log Level": self.log_level,
        }

        # stdout is reserved for the stdio transport
        console = Console(stderr=True)
        table = Table(title="MongoDB MCP Configuration", show_header=True)
        table.add_column("Setting", style="cyan", no_wrap=False)
        table.add_column("Value", style="magenta", no_wrap=False)

        for key, value in config_items.items():
            table.add_row(key, value)

        console.print(table)


# Global settings instance - initialized once at module import
settings = Settings()


def print_config() -> None:
    """Convenience function to print current configuration."""
    settings.print_config()


if __name__ == "__main__":
    # Script: Validate and display configuration
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        logger.info("Starting configuration validation...")
        settings.validate_configuration()
        print_config()
        logger.info("✓ Configuration is valid and ready for use")
        sys.exit(0)

    except ValueError as e:
        logger.error(f"✗ Configuration validation failed: {e}")
        sys.exit(1)
