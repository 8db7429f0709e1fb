"""
Provider configuration resolution.

Each setting is resolved in a single pass, highest priority first:

    1. Explicit configuration value (provider block / command-line flag)
    2. Environment variable
    3. Hard-coded default (emits a warning diagnostic)

ENVIRONMENT VARIABLES:
    NSXT_INSECURE   Skip TLS certificate verification (true/false)
    NSXT_HOSTNAME   NSX Manager hostname, IP or URL
    NSXT_USERNAME   API username
    NSXT_PASSWORD   API password
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from nsxt_intervlan_routing.framework import Diagnostics

ENV_INSECURE = "NSXT_INSECURE"
ENV_HOSTNAME = "NSXT_HOSTNAME"
ENV_USERNAME = "NSXT_USERNAME"
ENV_PASSWORD = "NSXT_PASSWORD"

DEFAULT_INSECURE = False
DEFAULT_HOST = "127.0.0.1"
DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "password"

_TRUE_VALUES = {"1", "t", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "f", "false", "no", "n", "off"}


@dataclass
class ProviderConfig:
    """Explicitly configured provider values; None means "not set"."""

    insecure: Optional[bool] = None
    host: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "ProviderConfig":
        data = data or {}
        return cls(
            insecure=data.get("insecure"),
            host=data.get("host"),
            username=data.get("username"),
            password=data.get("password"),
        )


@dataclass
class ResolvedProviderConfig:
    insecure: bool
    host: str
    username: str
    password: str

    @property
    def server_url(self) -> str:
        return server_url(self.host)


def server_url(host: str) -> str:
    """
    Turn a configured host into a base URL.

    Example:
        "nsx.example.com"          -> "https://nsx.example.com"
        "http://10.0.0.5:8080/"    -> "http://10.0.0.5:8080"
    """
    host = host.strip().rstrip("/")
    if "://" not in host:
        host = f"https://{host}"
    return host


def parse_bool(value: str) -> bool:
    """
    Raises:
        ValueError: If value is not a recognised boolean string
    """
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


def _default_warning(diags: Diagnostics, attribute: str, label: str, default: str, env: str) -> None:
    diags.add_warning(
        f"Missing NSX-T Manager API {label} (using default value: {default})",
        f"The provider is using a default value as there is a missing or empty value for the "
        f"NSX-T Manager API {label.lower()}. Set the {attribute} value in the configuration or use "
        f"the {env} environment variable. If either is already set, ensure the value is not empty.",
        attribute=attribute,
    )


def resolve_provider_config(
    config: ProviderConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[ResolvedProviderConfig, Diagnostics]:
    """
    Resolve the four provider settings from config, environment and defaults.

    Args:
        config:  Explicit values. None fields fall through to the environment;
                 any other value wins, and an empty string takes the default
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Tuple of (resolved config, diagnostics). Diagnostics hold one warning
        per setting that fell back to its default, and an error if
        insecure (explicit or NSXT_INSECURE) is not a boolean.
    """
    env = os.environ if environ is None else environ
    diags = Diagnostics()

    # insecure
    insecure = DEFAULT_INSECURE
    if isinstance(config.insecure, str):
        try:
            insecure = parse_bool(config.insecure)
        except ValueError as e:
            diags.add_error(
                "Invalid NSX-T Manager API insecure value",
                f"insecure must be true or false: {e}",
                attribute="insecure",
            )
    elif config.insecure is not None:
        insecure = bool(config.insecure)
    elif env.get(ENV_INSECURE):
        try:
            insecure = parse_bool(env[ENV_INSECURE])
        except ValueError as e:
            diags.add_error(
                "Invalid NSX-T Manager API insecure value",
                f"{ENV_INSECURE} must be true or false: {e}",
                attribute="insecure",
            )
    else:
        _default_warning(diags, "insecure", "Insecure", "false", ENV_INSECURE)

    # host
    host = config.host if config.host is not None else env.get(ENV_HOSTNAME, "")
    if not host:
        _default_warning(diags, "host", "Hostname", DEFAULT_HOST, ENV_HOSTNAME)
        host = DEFAULT_HOST

    # username
    username = config.username if config.username is not None else env.get(ENV_USERNAME, "")
    if not username:
        _default_warning(diags, "username", "Username", DEFAULT_USERNAME, ENV_USERNAME)
        username = DEFAULT_USERNAME

    # password
    password = config.password if config.password is not None else env.get(ENV_PASSWORD, "")
    if not password:
        _default_warning(diags, "password", "Password", DEFAULT_PASSWORD, ENV_PASSWORD)
        password = DEFAULT_PASSWORD

    resolved = ResolvedProviderConfig(
        insecure=insecure,
        host=host,
        username=username,
        password=password,
    )
    return resolved, diags
