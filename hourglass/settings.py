"""
Hourglass Settings - Configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent


class HourglassSettings(BaseSettings):
    """
    Hourglass configuration settings.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in current directory
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="HG_",  # All Hourglass env vars must start with HG_
    )

    # Stack Configuration
    project_name: str = Field(
        default="hourglass",
        description="Pulumi project name (env: HG_PROJECT_NAME)",
    )

    stack_name: str = Field(
        default="dev",
        description="Pulumi stack name (env: HG_STACK_NAME)",
    )

    location: str = Field(
        default="westeurope",
        description="Azure region for all resources (env: HG_LOCATION)",
    )

    resource_group_prefix: str = Field(
        default="t",
        description="Prefix of the generated resource group name (env: HG_RESOURCE_GROUP_PREFIX)",
    )

    # Datastore Configuration
    db_admin_login: str = Field(
        default="temporaladmin",
        description="MySQL administrator login (env: HG_DB_ADMIN_LOGIN)",
    )

    db_allow_all_ips: bool = Field(
        default=True,
        description="Open the MySQL firewall to every source IP (env: HG_DB_ALLOW_ALL_IPS)",
    )

    db_qualify_login: bool = Field(
        default=True,
        description="Hand the Temporal server the login as <login>@<server> (env: HG_DB_QUALIFY_LOGIN)",
    )

    # Temporal Configuration
    temporal_version: str = Field(
        default="1.1.1",
        description="Temporal server and web image tag (env: HG_TEMPORAL_VERSION)",
    )

    secure_environment: bool = Field(
        default=False,
        description="Pass the database password to container instances as a secure value (env: HG_SECURE_ENVIRONMENT)",
    )

    # Cluster Configuration
    kubernetes_version: str | None = Field(
        default=None,
        description="AKS Kubernetes version, unset for the AKS default (env: HG_KUBERNETES_VERSION)",
    )

    vm_size: str = Field(
        default="Standard_DS2_v2",
        description="AKS node VM size (env: HG_VM_SIZE)",
    )

    vm_count: int = Field(
        default=3,
        ge=1,
        description="AKS node count (env: HG_VM_COUNT)",
    )

    # Application Configuration
    app_folder: str = Field(
        default="./workflow",
        description="Docker build context of the workflow application (env: HG_APP_FOLDER)",
    )

    app_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port the workflow application listens on (env: HG_APP_PORT)",
    )

    app_namespace: str = Field(
        default="temporal",
        description="Kubernetes namespace for the cluster substrate (env: HG_APP_NAMESPACE)",
    )

    # Pulumi Configuration
    pulumi_config_passphrase: str = Field(
        default="hourglass",
        description="Pulumi passphrase for state encryption (env: HG_PULUMI_CONFIG_PASSPHRASE or PULUMI_CONFIG_PASSPHRASE)",
        validation_alias=AliasChoices(
            "HG_PULUMI_CONFIG_PASSPHRASE", "PULUMI_CONFIG_PASSPHRASE"
        ),
    )

    pulumi_state_dir: Path = Field(
        default=Path(".hourglass/state"),
        description="Local Pulumi backend directory (env: HG_PULUMI_STATE_DIR)",
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR) (env: HG_LOG_LEVEL)",
    )


# Global settings instance
_settings: HourglassSettings | None = None


def get_settings() -> HourglassSettings:
    """
    Get the global settings instance.

    Creates the settings instance on first call, then returns cached instance.

    Returns:
        HourglassSettings instance
    """
    global _settings
    if _settings is None:
        _settings = HourglassSettings()
    return _settings


def reload_settings() -> HourglassSettings:
    """
    Reload settings from environment/files.

    Useful for testing or when .env file changes.

    Returns:
        Fresh HourglassSettings instance
    """
    global _settings
    _settings = HourglassSettings()
    return _settings
