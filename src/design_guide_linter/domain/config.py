"""Configuration value object for linter settings."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from design_guide_linter.domain.constants import (
    DEFAULT_GUARD_PREFIX,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OPTION_PARAMETER_NAMES,
    DEFAULT_PREDICATE_SUFFIX,
    DEFAULT_TRUSTED_MODULES,
)
from design_guide_linter.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

_KNOWN_KEYS: frozenset[str] = frozenset(
    {
        "context_depth",
        "disabled_rules",
        "trusted_modules",
        "option_parameter_names",
        "guard_prefix",
        "predicate_suffix",
        "test_support",
        "max_workers",
        "module_timeout",
    }
)


@dataclass(frozen=True)
class CapabilitySpec:
    """What a test support base provides and the calls that prove it is used."""

    capability: str
    hallmarks: tuple[str, ...]


class ConfigurationLoader:
    """
    Immutable view over the [tool.design-guide] section of pyproject.toml.

    Values are validated once at construction; a wrong type raises
    ConfigurationError so a bad section is fatal before any analysis starts.
    """

    def __init__(self, section: Mapping[str, object] | None = None) -> None:
        self._config: Mapping[str, object] = MappingProxyType(dict(section or {}))
        self.validate_config(self._config)

    @staticmethod
    def validate_config(config: Mapping[str, object]) -> None:
        """Validate configuration values."""
        for key in config:
            if key not in _KNOWN_KEYS:
                logger.warning("Ignoring unknown configuration key '%s'", key)
        for key in ("context_depth", "max_workers"):
            value = config.get(key)
            if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 1):
                raise ConfigurationError(f"'{key}' must be a positive integer, got {value!r}")
        timeout = config.get("module_timeout")
        if timeout is not None and (
            not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0
        ):
            raise ConfigurationError(f"'module_timeout' must be a positive number, got {timeout!r}")
        for key in ("disabled_rules", "trusted_modules", "option_parameter_names"):
            value = config.get(key)
            if value is not None and (
                not isinstance(value, list) or not all(isinstance(v, str) for v in value)
            ):
                raise ConfigurationError(f"'{key}' must be a list of strings")
        for key in ("guard_prefix", "predicate_suffix"):
            value = config.get(key)
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(f"'{key}' must be a string")
        support = config.get("test_support")
        if support is not None:
            ConfigurationLoader._parse_test_support(support)

    @staticmethod
    def _parse_test_support(raw: object) -> dict[str, CapabilitySpec]:
        if not isinstance(raw, Mapping):
            raise ConfigurationError("'test_support' must be a table of support bases")
        table: dict[str, CapabilitySpec] = {}
        for base, entry in raw.items():
            if not isinstance(entry, Mapping):
                raise ConfigurationError(f"test_support.{base} must be a table")
            capability = entry.get("capability")
            hallmarks = entry.get("hallmarks")
            if not isinstance(capability, str) or not capability:
                raise ConfigurationError(f"test_support.{base}.capability must be a non-empty string")
            if not isinstance(hallmarks, list) or not all(isinstance(h, str) for h in hallmarks):
                raise ConfigurationError(f"test_support.{base}.hallmarks must be a list of strings")
            table[str(base)] = CapabilitySpec(capability, tuple(hallmarks))
        return table

    @property
    def config(self) -> Mapping[str, object]:
        """Return the loaded configuration."""
        return self._config

    def _get_set(self, key: str, defaults: frozenset[str] | None = None) -> frozenset[str]:
        raw = self._config.get(key, [])
        items = frozenset(item for item in raw if isinstance(item, str)) if isinstance(raw, list) else frozenset()
        if defaults:
            return defaults | items
        return items

    @property
    def context_depth(self) -> int:
        """Namespace segments a module name may have before it counts as nested."""
        return int(self._config.get("context_depth", 1))  # type: ignore[call-overload]

    @property
    def disabled_rules(self) -> frozenset[str]:
        return self._get_set("disabled_rules")

    @property
    def trusted_modules(self) -> frozenset[str]:
        """Standard-library modules (merged with defaults) whose calls count as resolved."""
        return self._get_set("trusted_modules", DEFAULT_TRUSTED_MODULES)

    @property
    def option_parameter_names(self) -> tuple[str, ...]:
        raw = self._config.get("option_parameter_names")
        if isinstance(raw, list):
            return tuple(raw)
        return DEFAULT_OPTION_PARAMETER_NAMES

    @property
    def guard_prefix(self) -> str:
        return str(self._config.get("guard_prefix", DEFAULT_GUARD_PREFIX))

    @property
    def predicate_suffix(self) -> str:
        return str(self._config.get("predicate_suffix", DEFAULT_PREDICATE_SUFFIX))

    @property
    def test_support(self) -> Mapping[str, CapabilitySpec]:
        """Support base -> capability table ({} when none was supplied)."""
        raw = self._config.get("test_support")
        table = self._parse_test_support(raw) if raw is not None else {}
        return MappingProxyType(table)

    @property
    def has_test_support(self) -> bool:
        return self._config.get("test_support") is not None

    @property
    def max_workers(self) -> int:
        return int(self._config.get("max_workers", DEFAULT_MAX_WORKERS))  # type: ignore[call-overload]

    @property
    def module_timeout(self) -> float | None:
        """Wall-clock budget per module in seconds (None disables)."""
        value = self._config.get("module_timeout")
        return float(value) if value is not None else None  # type: ignore[arg-type]

    def with_overrides(self, **overrides: object) -> "ConfigurationLoader":
        """New loader with the given keys replaced (None values are ignored)."""
        merged = dict(self._config)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return ConfigurationLoader(merged)
