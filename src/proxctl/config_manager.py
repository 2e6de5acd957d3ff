"""Configuration management module.

This module handles persistent configuration storage using TOML format.
Stores the cluster endpoint, API token and connection tuning (timeouts,
retry policy, task wait ceiling).

Security:
- Config file permissions: 0600 (owner read/write only)
- Path validation
- Token secret never displayed unmasked
"""

import logging
import os
import tempfile
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

try:
    import tomli  # type: ignore[import]
except ImportError:
    # Fallback for newer Python versions
    try:
        import tomllib as tomli  # type: ignore[import]
    except ImportError as e:
        raise ImportError("toml library not available. Install with: pip install tomli") from e

try:
    import tomlkit
except ImportError as e:
    raise ImportError("tomlkit library not available. Install with: pip install tomlkit") from e

from proxctl.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PROXCTL_CONFIG"

# Environment variable -> config key
ENV_OVERRIDES = {
    "PROXCTL_SERVER": "server",
    "PROXCTL_TOKEN_ID": "token_id",
    "PROXCTL_TOKEN_SECRET": "token_secret",
    "PROXCTL_VERIFY_SSL": "verify_ssl",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


@dataclass
class ProxctlConfig:
    """proxctl configuration data."""

    server: str | None = None
    token_id: str | None = None
    token_secret: str | None = None
    verify_ssl: bool = True
    timeout: float = 30.0
    retry_count: int = 3
    retry_delay: float = 1.0
    max_retry_delay: float = 30.0
    retry_writes: bool = False
    task_timeout: float = 60.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        data = asdict(self)
        # TOML has no null
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProxctlConfig":
        """Create from dictionary, ignoring keys this version does not know."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.debug(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**{k: v for k, v in data.items() if k in known})


def _field_types() -> dict[str, type]:
    defaults = ProxctlConfig()
    types: dict[str, type] = {}
    for f in fields(ProxctlConfig):
        default = getattr(defaults, f.name)
        types[f.name] = str if default is None else type(default)
    return types


def coerce_value(key: str, raw: str) -> Any:
    """Convert a command-line string to the type of config field ``key``.

    Raises:
        ConfigError: If the key is unknown or the value has the wrong form
    """
    types = _field_types()
    if key not in types:
        raise ConfigError(f"Unknown config key: {key}. Valid keys: {', '.join(types)}")

    expected = types[key]
    value = raw.strip()
    if expected is bool:
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigError(f"Invalid boolean for {key}: {raw}")
    if expected in (int, float):
        try:
            number = expected(value)
        except ValueError:
            raise ConfigError(f"Invalid number for {key}: {raw}") from None
        if number < 0:
            raise ConfigError(f"{key} must not be negative")
        return number
    return value


class ConfigManager:
    """Manage proxctl configuration file.

    Configuration is stored at ~/.proxctl/config.toml with secure permissions.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".proxctl"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def _validate_config_path(cls, path: Path) -> Path:
        """Validate configuration file path for security.

        Args:
            path: Path to validate

        Returns:
            Resolved path

        Raises:
            ConfigError: If path is outside allowed directories

        Security:
            - Resolves symlinks to prevent symlink attacks
            - Validates path is within ~/.proxctl/, the working directory
              or the system temp directory
        """
        resolved_path = path.resolve()

        allowed_dirs = [
            cls.DEFAULT_CONFIG_DIR.resolve(),
            Path.cwd().resolve(),
            Path(tempfile.gettempdir()).resolve(),
        ]

        for allowed_dir in allowed_dirs:
            try:
                resolved_path.relative_to(allowed_dir)
                return resolved_path
            except ValueError:
                continue

        raise ConfigError(
            f"Config path outside allowed directories: {resolved_path}\n"
            f"Allowed directories:\n"
            f"  - {cls.DEFAULT_CONFIG_DIR}\n"
            f"  - {Path.cwd()}\n"
            "This restriction prevents path traversal attacks."
        )

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Args:
            custom_path: Custom config file path (optional, falls back to
                the PROXCTL_CONFIG environment variable)

        Returns:
            Path to config file

        Raises:
            ConfigError: If a custom path is invalid or does not exist
        """
        custom_path = custom_path or os.getenv(CONFIG_ENV_VAR)
        if custom_path:
            path = cls._validate_config_path(Path(custom_path).expanduser())
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def ensure_config_dir(cls) -> Path:
        """Ensure config directory exists with secure permissions.

        Raises:
            ConfigError: If directory creation fails
        """
        try:
            cls.DEFAULT_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
            os.chmod(cls.DEFAULT_CONFIG_DIR, 0o700)
            logger.debug(f"Config directory ready: {cls.DEFAULT_CONFIG_DIR}")
            return cls.DEFAULT_CONFIG_DIR
        except OSError as e:
            raise ConfigError(f"Failed to create config directory: {e}") from e

    @classmethod
    def load_config(cls, custom_path: str | None = None, apply_env: bool = True) -> ProxctlConfig:
        """Load configuration from file.

        Args:
            custom_path: Custom config file path (optional)
            apply_env: Apply PROXCTL_* environment overrides on top of the file

        Returns:
            ProxctlConfig object

        Raises:
            ConfigError: If loading fails
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            logger.debug("Config file not found, using defaults")
            config = ProxctlConfig()
        else:
            try:
                mode = config_path.stat().st_mode & 0o777
                if mode & 0o077:
                    logger.warning(
                        f"Config file has insecure permissions: {oct(mode)}. Fixing to 0600..."
                    )
                    os.chmod(config_path, 0o600)

                with open(config_path, "rb") as f:
                    data = tomli.load(f)  # type: ignore[attr-defined]

                logger.debug(f"Loaded config from: {config_path}")
                config = ProxctlConfig.from_dict(data)  # type: ignore[arg-type]
            except Exception as e:
                raise ConfigError(f"Failed to load config: {e}") from e

        if apply_env:
            cls.apply_env_overrides(config)
        return config

    @classmethod
    def apply_env_overrides(cls, config: ProxctlConfig) -> ProxctlConfig:
        """Overlay PROXCTL_* environment variables onto ``config`` in place."""
        for env_var, key in ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if raw is None or raw == "":
                continue
            try:
                setattr(config, key, coerce_value(key, raw))
            except ConfigError as e:
                raise ConfigError(f"{env_var}: {e}") from e
        return config

    @classmethod
    def save_config(cls, config: ProxctlConfig, custom_path: str | None = None) -> Path:
        """Save configuration to file.

        Args:
            config: Configuration to save
            custom_path: Custom config file path (optional)

        Returns:
            Path written

        Raises:
            ConfigError: If saving fails or path is outside allowed directories
        """
        temp_path: Path | None = None
        try:
            custom_path = custom_path or os.getenv(CONFIG_ENV_VAR)
            if custom_path:
                config_path = cls._validate_config_path(Path(custom_path).expanduser())
                config_path.parent.mkdir(parents=True, exist_ok=True)
            else:
                cls.ensure_config_dir()
                config_path = cls.DEFAULT_CONFIG_FILE

            # Temp file + atomic rename; tomlkit keeps existing comments
            temp_path = config_path.with_suffix(".tmp")

            if config_path.exists():
                with open(config_path) as f:
                    doc = tomlkit.load(f)
            else:
                doc = tomlkit.document()

            for key, value in config.to_dict().items():
                doc[key] = value

            with open(temp_path, "w") as f:
                tomlkit.dump(doc, f)

            os.chmod(temp_path, 0o600)
            temp_path.replace(config_path)

            logger.debug(f"Saved config to: {config_path}")
            return config_path

        except ConfigError:
            raise
        except Exception as e:
            if temp_path and temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config: {e}") from e

    @classmethod
    def set_value(cls, key: str, raw_value: str, custom_path: str | None = None) -> ProxctlConfig:
        """Set one key from its string form and persist the file.

        Environment overrides are not applied, so they never leak into the
        saved file.

        Raises:
            ConfigError: If the key or value is invalid, or saving fails
        """
        value = coerce_value(key, raw_value)

        try:
            config = cls.load_config(custom_path, apply_env=False)
        except ConfigError:
            if custom_path and not Path(custom_path).expanduser().exists():
                config = ProxctlConfig()
            else:
                raise

        setattr(config, key, value)
        cls.save_config(config, custom_path)
        return config

    @classmethod
    def masked_view(cls, config: ProxctlConfig) -> dict[str, Any]:
        """Config as a dict with secrets redacted, for display."""
        return LogSanitizer.sanitize_dict(asdict(config))


__all__ = ["ConfigError", "ConfigManager", "ProxctlConfig", "coerce_value"]
