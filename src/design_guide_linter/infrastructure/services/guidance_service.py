"""GuidanceService: loads the rule registry and provides per-rule guidance."""

from pathlib import Path
from typing import cast

import yaml

from design_guide_linter.domain.protocols import GuidanceServiceProtocol
from design_guide_linter.domain.registry_types import RuleRegistryEntry


class GuidanceService(GuidanceServiceProtocol):
    """Loads rule_registry.yaml and serves display names, rationale and manual instructions."""

    def __init__(self, registry_path: str | None = None) -> None:
        if registry_path is not None:
            self._path = Path(registry_path)
        else:
            # Default: packaged resource next to this package
            _base = Path(__file__).resolve().parent.parent.parent
            self._path = _base / "resources" / "rule_registry.yaml"
        self._registry: dict[str, RuleRegistryEntry] = {}
        self._load()

    def _load(self) -> None:
        if self._path.exists():
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                self._registry = (
                    cast(dict[str, RuleRegistryEntry], data) if isinstance(data, dict) else {}
                )
        else:
            self._registry = {}

    def get_registry(self) -> dict[str, RuleRegistryEntry]:
        """Return a shallow copy of the loaded registry."""
        return dict(self._registry)

    def rule_ids(self) -> list[str]:
        return sorted(self._registry)

    def get_entry(self, rule_id: str) -> RuleRegistryEntry | None:
        entry = self._registry.get(rule_id)
        if entry:
            return cast(RuleRegistryEntry, dict(entry))
        return None

    def get_display_name(self, rule_id: str) -> str:
        entry = self.get_entry(rule_id)
        if not entry:
            return rule_id.replace("-", " ").title()
        return str(entry.get("display_name") or entry.get("short_description") or rule_id)

    def get_manual_instructions(self, rule_id: str) -> str:
        entry = self.get_entry(rule_id)
        if entry and "manual_instructions" in entry:
            return str(entry["manual_instructions"]).strip()
        return "See the style guide. Fix the violation at the reported location."
