"""
Kernel Configuration (``inventory_kernel.config``).

Responsibility
--------------
Loads the runtime settings of the kernel (store URL, SQL echo, log level,
VAT rate table, price rounding scale) from an optional YAML file and from
environment overrides, and validates them into a frozen ``KernelConfig``.

Precedence
----------
defaults  <  YAML file  <  environment (``INVENTORY_*``)

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or bad values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping

import yaml

from inventory_kernel.exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///inventory.db"

# VAT code -> percentage
DEFAULT_VAT_RATES: dict[int, Decimal] = {
    0: Decimal("0"),
    1: Decimal("12"),
    2: Decimal("21"),
}

ENV_DATABASE_URL = "INVENTORY_DATABASE_URL"
ENV_LOG_LEVEL = "INVENTORY_LOG_LEVEL"
ENV_ECHO_SQL = "INVENTORY_ECHO_SQL"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class KernelConfig:
    """Validated kernel settings."""

    database_url: str = DEFAULT_DATABASE_URL
    echo_sql: bool = False
    log_level: str = "INFO"
    vat_rates: Mapping[int, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_VAT_RATES)
    )
    price_scale: int = 2

    def __post_init__(self):
        if not self.database_url:
            raise ConfigurationError("database_url", "must not be empty")
        if logging.getLevelName(self.log_level.upper()) not in (
            logging.DEBUG,
            logging.INFO,
            logging.WARNING,
            logging.ERROR,
            logging.CRITICAL,
        ):
            raise ConfigurationError("log_level", f"unknown level {self.log_level!r}")
        if self.price_scale < 0:
            raise ConfigurationError("price_scale", "must be >= 0")
        for code, pct in self.vat_rates.items():
            if pct < 0:
                raise ConfigurationError("vat_rates", f"negative rate for code {code}")

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level.upper())

    def vat_percentage(self, vat_code: int) -> Decimal:
        """Percentage for a VAT code; unknown codes are a configuration error."""
        try:
            return self.vat_rates[vat_code]
        except KeyError:
            raise ConfigurationError(
                "vat_rates", f"no rate configured for code {vat_code}"
            ) from None


def _parse_bool(setting: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(setting, f"expected a boolean, got {value!r}")


def _parse_vat_rates(value: Any) -> dict[int, Decimal]:
    if not isinstance(value, Mapping):
        raise ConfigurationError("vat_rates", "expected a mapping of code -> percent")
    rates: dict[int, Decimal] = {}
    for code, pct in value.items():
        try:
            rates[int(code)] = Decimal(str(pct))
        except (ValueError, InvalidOperation):
            raise ConfigurationError(
                "vat_rates", f"bad entry {code!r}: {pct!r}"
            ) from None
    return rates


def config_from_mapping(data: Mapping[str, Any]) -> KernelConfig:
    """Build a KernelConfig from a plain mapping (e.g. parsed YAML)."""
    known = {f.name for f in fields(KernelConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError("config", f"unknown keys: {', '.join(unknown)}")

    kwargs: dict[str, Any] = {}
    if "database_url" in data:
        kwargs["database_url"] = str(data["database_url"])
    if "echo_sql" in data:
        kwargs["echo_sql"] = _parse_bool("echo_sql", data["echo_sql"])
    if "log_level" in data:
        kwargs["log_level"] = str(data["log_level"]).upper()
    if "vat_rates" in data:
        kwargs["vat_rates"] = _parse_vat_rates(data["vat_rates"])
    if "price_scale" in data:
        try:
            kwargs["price_scale"] = int(data["price_scale"])
        except (TypeError, ValueError):
            raise ConfigurationError(
                "price_scale", f"expected an integer, got {data['price_scale']!r}"
            ) from None
    return KernelConfig(**kwargs)


def apply_env_overrides(
    config: KernelConfig, environ: Mapping[str, str] | None = None
) -> KernelConfig:
    """Return a copy of ``config`` with INVENTORY_* environment overrides applied."""
    env = os.environ if environ is None else environ
    changes: dict[str, Any] = {}
    if env.get(ENV_DATABASE_URL):
        changes["database_url"] = env[ENV_DATABASE_URL]
    if env.get(ENV_LOG_LEVEL):
        changes["log_level"] = env[ENV_LOG_LEVEL].upper()
    if ENV_ECHO_SQL in env:
        changes["echo_sql"] = _parse_bool("echo_sql", env[ENV_ECHO_SQL])
    return replace(config, **changes) if changes else config


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> KernelConfig:
    """
    Load the kernel configuration.

    Args:
        path: Optional YAML file. When None only defaults and environment
            overrides apply.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
        yaml.YAMLError: if the file is not valid YAML.
        ConfigurationError: if a value is invalid.
    """
    if path is None:
        config = KernelConfig()
    else:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, Mapping):
            raise ConfigurationError("config", "top level must be a mapping")
        config = config_from_mapping(data)
    return apply_env_overrides(config, environ)
