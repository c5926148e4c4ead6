"""Database configuration loaded from the environment."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from datetime import timedelta
from fractions import Fraction
from typing import Any

_NANOS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}

_DURATION_PART = re.compile(r"(\d*)(?:\.(\d*))?(ns|us|µs|μs|ms|s|m|h)")
_INTEGER = re.compile(r"[+-]?\d+")
_ENV_PREFIX = "DB_"


class ConfigError(ValueError):
    """Raised when a configuration value is missing or out of range."""


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"5m"``, ``"1h30m"`` or ``"1.5s"``.

    Accepts an optional sign followed by one or more decimal numbers, each with
    a unit (ns, us, µs, ms, s, m, h). A bare ``"0"`` is also accepted.
    """
    rest = text
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total = Fraction(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None or (not match.group(1) and not match.group(2)):
            raise ValueError(f"invalid duration {text!r}")
        whole, frac, unit = match.groups()
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _NANOS_PER_UNIT[unit]
        pos = match.end()

    nanos = int(total)
    return timedelta(microseconds=sign * (nanos // 1_000))


@dataclass
class DatabaseConfig:
    """Connection settings and pool limits for the database."""

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = field(default="", repr=False)
    name: str = "aggregator"
    ssl_mode: str = "disable"
    max_open_conns: int = 25
    max_idle_conns: int = 5
    conn_max_lifetime: timedelta = timedelta(minutes=5)
    conn_max_idle_time: timedelta = timedelta(minutes=1)

    def dsn(self) -> str:
        """Return the key=value connection string."""
        return (
            f"host={self.host} port={self.port} user={self.user} "
            f"password={self.password} dbname={self.name} sslmode={self.ssl_mode}"
        )

    def validate(self) -> None:
        """Raise ConfigError if a required value is missing or invalid."""
        if not self.host:
            raise ConfigError("database host is required")
        if self.port <= 0 or self.port > 65535:
            raise ConfigError("database port must be between 1 and 65535")
        if not self.user:
            raise ConfigError("database user is required")
        if not self.name:
            raise ConfigError("database name is required")
        if self.max_open_conns <= 0:
            raise ConfigError("max open connections must be greater than 0")
        if self.max_idle_conns <= 0:
            raise ConfigError("max idle connections must be greater than 0")
        if self.max_idle_conns > self.max_open_conns:
            raise ConfigError(
                "max idle connections cannot be greater than max open connections"
            )


def _convert(raw: str | None, default: Any) -> Any:
    """Interpret an environment value like its default; fall back on bad input."""
    if not raw:
        return default
    if isinstance(default, timedelta):
        try:
            return parse_duration(raw)
        except ValueError:
            return default
    if isinstance(default, int):
        return int(raw) if _INTEGER.fullmatch(raw) else default
    return raw


def load_database_config() -> DatabaseConfig:
    """Build a DatabaseConfig from DB_* environment variables.

    Each field is read from ``DB_`` followed by its name in upper case.
    """
    defaults = DatabaseConfig()
    values = {
        item.name: _convert(
            os.environ.get(_ENV_PREFIX + item.name.upper()),
            getattr(defaults, item.name),
        )
        for item in fields(DatabaseConfig)
    }
    return DatabaseConfig(**values)