import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import InterpolationResolutionError

from bite.constants import (
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_MAX_START_DELAY_SECONDS,
    DEFAULT_SETTINGS_PATH,
    DEFAULT_SSH_CONFIG_PATH,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_USERNAME,
    POLL_INTERVAL_SECONDS,
    AddressType,
)
from bite.providers import get_default_region, list_providers

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "aws"


class ConfigLoader:
    """Load bite settings from YAML and merge them with defaults.

    The settings file is optional. It may hold a ``defaults`` mapping with
    any of the ``BUILT_IN_DEFAULTS`` keys and a ``vars`` mapping usable for
    ``${...}`` interpolation::

        vars:
          home_region: eu-west-1
        defaults:
          region: ${home_region}
          ssh_username: ubuntu
          max_start_delay: 60
    """

    def __init__(self) -> None:
        """Initialize ConfigLoader with provider-specific defaults."""
        self.BUILT_IN_DEFAULTS = {
            "provider": DEFAULT_PROVIDER,
            "region": os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
            or get_default_region(DEFAULT_PROVIDER),
            "ssh_config": DEFAULT_SSH_CONFIG_PATH,
            "ssh_username": DEFAULT_SSH_USERNAME,
            "ssh_port": DEFAULT_SSH_PORT,
            "address_type": AddressType.PRIVATE.value,
            "max_start_delay": DEFAULT_MAX_START_DELAY_SECONDS,
            "poll_interval": POLL_INTERVAL_SECONDS,
            "connect_timeout": CONNECT_TIMEOUT_SECONDS,
            "key_file": None,
        }

    def load_config(self, config_path: str | None = None) -> dict[str, Any]:
        """Load configuration from YAML file.

        Parameters
        ----------
        config_path : str | None
            Path to YAML settings file. If None, checks BITE_CONFIG env var,
            then falls back to ~/.config/bite/bite.yaml

        Returns
        -------
        dict[str, Any]
            Parsed configuration with all variable interpolations resolved

        Raises
        ------
        ValueError
            If the file is not valid YAML or interpolation fails
        RuntimeError
            If the file exists but cannot be read
        """
        if config_path is None:
            config_path = os.environ.get("BITE_CONFIG", DEFAULT_SETTINGS_PATH)

        config_file = Path(config_path).expanduser()

        if not config_file.exists():
            logger.debug("No settings file at %s, using defaults", config_file)
            return {"defaults": {}}

        try:
            cfg = OmegaConf.load(config_file)
        except yaml.YAMLError as e:
            logger.error("Failed to parse YAML config file %s: %s", config_file, e)
            raise ValueError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            logger.error("Failed to read config file %s: %s", config_file, e)
            raise RuntimeError(f"Failed to read config file {config_file}: {e}") from e

        if cfg is None:
            return {"defaults": {}}

        if "vars" in cfg:
            vars_dict = OmegaConf.to_container(cfg.vars, resolve=False)
            for key, value in vars_dict.items():
                if key not in cfg:
                    cfg[key] = value

        try:
            config = OmegaConf.to_container(cfg, resolve=True, throw_on_missing=True)
        except InterpolationResolutionError as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e
        except (KeyError, AttributeError) as e:
            logger.error("Failed to resolve configuration variables: %s", e)
            raise ValueError(f"Configuration variable resolution error: {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"{config_file} must contain a mapping")

        return config

    def get_settings(
        self, config: dict[str, Any], overrides: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Merge built-in defaults, file defaults and CLI overrides.

        Parameters
        ----------
        config : dict[str, Any]
            Configuration returned by load_config
        overrides : dict[str, Any] | None
            Values from the command line; None values are ignored

        Returns
        -------
        dict[str, Any]
            Merged and validated settings
        """
        merged = copy.deepcopy(self.BUILT_IN_DEFAULTS)

        yaml_defaults = config.get("defaults") or {}
        for key, value in yaml_defaults.items():
            merged[key] = value

        for key, value in (overrides or {}).items():
            if value is not None:
                merged[key] = value

        self.validate_config(merged)
        return merged

    def validate_config(self, config: dict[str, Any]) -> None:
        """Validate settings types and ranges.

        Parameters
        ----------
        config : dict[str, Any]
            Settings to validate

        Raises
        ------
        ValueError
            If settings are invalid
        """
        unknown = sorted(set(config) - set(self.BUILT_IN_DEFAULTS))
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")

        provider = config.get("provider")
        available_providers = list_providers()
        if provider not in available_providers:
            raise ValueError(
                f"Unknown provider: {provider}. Available providers: {available_providers}"
            )

        for field in ("region", "ssh_config", "ssh_username"):
            if not isinstance(config.get(field), str) or not config[field]:
                raise ValueError(f"{field} must be a non-empty string")

        port = config.get("ssh_port")
        if not isinstance(port, int) or isinstance(port, bool) or not 1 <= port <= 65535:
            raise ValueError(f"ssh_port must be between 1-65535, got {port}")

        valid_address_types = [t.value for t in AddressType]
        if config.get("address_type") not in valid_address_types:
            raise ValueError(
                f"address_type must be one of {valid_address_types}, "
                f"got {config.get('address_type')!r}"
            )

        for field in ("max_start_delay", "poll_interval", "connect_timeout"):
            value = config.get(field)
            if (
                not isinstance(value, (int, float))
                or isinstance(value, bool)
                or value <= 0
            ):
                raise ValueError(f"{field} must be a positive number, got {value!r}")

        key_file = config.get("key_file")
        if key_file is not None and not isinstance(key_file, str):
            raise ValueError("key_file must be a string path")
