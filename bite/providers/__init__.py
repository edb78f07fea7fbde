"""Provider registry and management.

Providers are registered by name together with their compute class and
default region. Only AWS ships today.
"""

from __future__ import annotations

from bite.providers.aws import EC2Manager
from bite.providers.aws.constants import DEFAULT_REGION
from bite.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
    ProviderError,
)

_PROVIDERS: dict[str, dict[str, type | str | None]] = {}


def register_provider(
    name: str,
    compute_class: type,
    default_region: str | None = None,
) -> None:
    """Register a cloud provider implementation.

    Parameters
    ----------
    name : str
        Provider name (e.g., 'aws')
    compute_class : type
        Class implementing the ComputeProvider protocol
    default_region : str | None
        Default region for this provider
    """
    _PROVIDERS[name] = {
        "compute": compute_class,
        "default_region": default_region,
    }


def get_provider(name: str) -> type:
    """Get the compute class of a registered provider.

    Parameters
    ----------
    name : str
        Provider name

    Returns
    -------
    type
        Compute provider class

    Raises
    ------
    ValueError
        If provider is not registered
    """
    if name not in _PROVIDERS:
        raise ValueError(f"Unknown provider: {name}")
    return _PROVIDERS[name]["compute"]


def list_providers() -> list[str]:
    """List all registered provider names."""
    return list(_PROVIDERS.keys())


def get_default_region(provider_name: str) -> str:
    """Get the default region for a provider.

    Parameters
    ----------
    provider_name : str
        Provider name

    Returns
    -------
    str
        Default region for the provider

    Raises
    ------
    ValueError
        If provider is not registered or has no default region
    """
    if provider_name not in _PROVIDERS:
        raise ValueError(f"Unknown provider: {provider_name}")

    default_region = _PROVIDERS[provider_name].get("default_region")

    if default_region is None:
        raise ValueError(f"No default region defined for provider: {provider_name}")

    return default_region


__all__ = [
    "register_provider",
    "get_provider",
    "list_providers",
    "get_default_region",
    "ProviderError",
    "ProviderCredentialsError",
    "ProviderAPIError",
    "ProviderConnectionError",
]

register_provider("aws", EC2Manager, DEFAULT_REGION)
