import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from pydantic import BaseModel, Field

from authz.config.logging import get_logger
from authz.core.roles import (
    ANONYMOUS_USERNAME,
    DEFAULT_ROLE_HIERARCHY,
    ROLE_SUPER_ADMIN,
    ROLE_USER,
)

logger = get_logger(__name__)


class ServerConfig(BaseModel):
    """Server configuration settings."""
    host: str = "localhost"
    port: int = 8000
    workers: int = 1
    debug: bool = False
    reload: bool = False
    log_level: str = "info"
    access_log: bool = True


class DatabaseConfig(BaseModel):
    """Database connection and pool settings."""
    url: str = "sqlite:///./authz.db"
    pool_size: int = 20
    max_overflow: int = 40
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True
    echo: bool = False


class SecurityConfig(BaseModel):
    """Authorization policy settings."""
    super_admin_role: str = ROLE_SUPER_ADMIN
    base_role: str = ROLE_USER
    anonymous_username: str = ANONYMOUS_USERNAME
    role_hierarchy: Union[Dict[str, List[str]], List[str]] = Field(
        default_factory=lambda: {role: list(implied) for role, implied in DEFAULT_ROLE_HIERARCHY.items()}
    )
    public_paths: List[str] = Field(
        default_factory=lambda: ["/api/v1/health", "/api/v1/health/**", "/docs", "/redoc", "/openapi.json"]
    )
    enforce_matched_rules: bool = False
    realm: str = "authz"


class LoggingConfig(BaseModel):
    """Logging output settings."""
    level: str = "INFO"
    format: str = "text"
    file: Optional[str] = None


class EndpointRuleSeed(BaseModel):
    """An endpoint rule created on first start."""
    url_pattern: str
    http_method: str
    role: str


class BootstrapUser(BaseModel):
    """Initial super-admin account."""
    username: str
    email: str
    password: str


class SeedConfig(BaseModel):
    """Data created at startup when missing."""
    enabled: bool = True
    permissions: List[str] = Field(default_factory=list)
    roles: Dict[str, List[str]] = Field(default_factory=dict)
    endpoint_rules: List[EndpointRuleSeed] = Field(default_factory=list)
    super_admin: Optional[BootstrapUser] = None


class AppConfig(BaseModel):
    """Main service configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    seed: SeedConfig = Field(default_factory=SeedConfig)

    # Raw configuration for complex nested structures
    raw_config: Dict[str, Any] = Field(default_factory=dict)


class ConfigLoader:
    """Configuration loader for YAML files with environment-specific overrides."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to AUTHZ_CONFIG_DIR, then the project's config directory.
        """
        if config_dir is None:
            env_dir = os.getenv("AUTHZ_CONFIG_DIR")
            if env_dir:
                self.config_dir = Path(env_dir)
            else:
                current_dir = Path(__file__).parent.parent.parent
                self.config_dir = current_dir / "config"
        else:
            self.config_dir = Path(config_dir)

    def load_config(self, environment: Optional[str] = None) -> AppConfig:
        """Load configuration for the specified environment.

        Args:
            environment: Environment name (development, production, test, ...).
                        If None, will try to detect from ENVIRONMENT variable.

        Returns:
            Loaded and validated configuration.
        """
        if environment is None:
            environment = os.getenv("ENVIRONMENT", "development")

        config_data = self._load_base_config()

        env_config = self._load_environment_config(environment)
        if env_config:
            config_data = self._merge_configs(config_data, env_config)

        config_data = self._substitute_env_vars(config_data)

        return self._create_app_config(config_data)

    def _load_base_config(self) -> Dict[str, Any]:
        """Load the base service configuration."""
        base_config_path = self.config_dir / "authz.yaml"
        if base_config_path.exists():
            return self._load_yaml_file(base_config_path)
        return {}

    def _load_environment_config(self, environment: str) -> Optional[Dict[str, Any]]:
        """Load environment-specific configuration."""
        env_config_path = self.config_dir / f"{environment}.yaml"
        if env_config_path.exists():
            return self._load_yaml_file(env_config_path)
        return None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load and parse a YAML file."""
        try:
            with open(file_path, 'r') as file:
                return yaml.safe_load(file) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config file {file_path}: {e}")
            return {}

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _substitute_env_vars(self, config: Any) -> Any:
        """Substitute environment variables in configuration values."""
        if isinstance(config, dict):
            return {key: self._substitute_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_string_env_vars(config)
        else:
            return config

    def _substitute_string_env_vars(self, value: str) -> str:
        """Substitute ${VAR} and ${VAR:default} references in a string value."""

        def replace_env_var(match):
            var_spec = match.group(1)
            if ':' in var_spec:
                var_name, default_value = var_spec.split(':', 1)
                return os.getenv(var_name, default_value)
            else:
                return os.getenv(var_spec, match.group(0))

        return re.sub(r'\$\{([^}]+)\}', replace_env_var, value)

    def _create_app_config(self, config_data: Dict[str, Any]) -> AppConfig:
        """Create an AppConfig object from configuration data."""
        return AppConfig(
            server=ServerConfig(**config_data.get("server", {})),
            database=DatabaseConfig(**config_data.get("database", {})),
            security=SecurityConfig(**config_data.get("security", {})),
            logging=LoggingConfig(**config_data.get("logging", {})),
            seed=SeedConfig(**config_data.get("seed", {})),
            raw_config=config_data
        )


# Global configuration instance
_config_loader = ConfigLoader()
_app_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the current service configuration."""
    global _app_config
    if _app_config is None:
        _app_config = _config_loader.load_config()
    return _app_config


def reload_config(environment: Optional[str] = None) -> AppConfig:
    """Reload the service configuration."""
    global _app_config
    _app_config = _config_loader.load_config(environment)
    return _app_config
