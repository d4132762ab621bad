"""The fixed, read-only rule catalog."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from design_guide_linter.domain.config import ConfigurationLoader
from design_guide_linter.domain.nodes import NodeKind
from design_guide_linter.domain.rules import StyleRule
from design_guide_linter.domain.rules.flow import (
    FlowDirectiveChoiceRule,
    NestedStructureMacroUsageRule,
    PatternMatchingUsageRule,
)
from design_guide_linter.domain.rules.module_rules import (
    FunctionOrderRule,
    ImportScopeRule,
    ModuledocScopeRule,
    TestCaseUsageRule,
)
from design_guide_linter.domain.rules.naming import PredicateNamingRule, SequentialNamingRule
from design_guide_linter.domain.rules.returns import (
    ErrorHandlingLocalityRule,
    OkErrorReturnConsistencyRule,
    OptionFormatRule,
)
from design_guide_linter.domain.rules.with_rules import (
    CallOrigins,
    ErrorMappingRule,
    WithElseCoverageRule,
    WithElseOrderRule,
    WithElseRedundancyRule,
)

logger = logging.getLogger(__name__)

RULE_IDS: tuple[str, ...] = (
    "with-else-coverage",
    "with-else-redundancy",
    "with-else-order",
    "error-mapping",
    "moduledoc-scope",
    "import-scope",
    "test-case-usage",
    "sequential-naming",
    "predicate-naming",
    "function-order",
    "flow-directive-choice",
    "pattern-matching-usage",
    "nested-structure-macro-usage",
    "option-format",
    "error-handling-locality",
    "ok-error-return-consistency",
)


@dataclass(frozen=True)
class RuleCatalog:
    """Enabled rules in catalog order plus the node-kind dispatch table built from them."""

    rules: tuple[StyleRule, ...]

    @classmethod
    def from_config(cls, config: ConfigurationLoader) -> "RuleCatalog":
        """Construct every rule once from configuration, dropping disabled ones."""
        origins = CallOrigins(config.trusted_modules)
        every: tuple[StyleRule, ...] = (
            WithElseCoverageRule(origins),
            WithElseRedundancyRule(origins),
            WithElseOrderRule(origins),
            ErrorMappingRule(origins),
            ModuledocScopeRule(),
            ImportScopeRule(),
            TestCaseUsageRule(config.test_support),
            SequentialNamingRule(),
            PredicateNamingRule(config.guard_prefix, config.predicate_suffix),
            FunctionOrderRule(),
            FlowDirectiveChoiceRule(),
            PatternMatchingUsageRule(),
            NestedStructureMacroUsageRule(),
            OptionFormatRule(config.option_parameter_names),
            ErrorHandlingLocalityRule(),
            OkErrorReturnConsistencyRule(),
        )
        disabled = config.disabled_rules
        for unknown in sorted(disabled - set(RULE_IDS)):
            logger.warning("Unknown rule id '%s' in disabled_rules", unknown)
        return cls(tuple(rule for rule in every if rule.rule_id not in disabled))

    def __iter__(self) -> Iterator[StyleRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def get(self, rule_id: str) -> StyleRule | None:
        return next((rule for rule in self.rules if rule.rule_id == rule_id), None)

    def enabled(self, rule_id: str) -> bool:
        return self.get(rule_id) is not None

    def dispatch_table(self) -> Mapping[NodeKind, tuple[StyleRule, ...]]:
        """NodeKind -> interested rules, in catalog order."""
        table: dict[NodeKind, list[StyleRule]] = {}
        for rule in self.rules:
            for kind in sorted(rule.applies_to, key=lambda k: k.value):
                table.setdefault(kind, []).append(rule)
        return MappingProxyType({kind: tuple(rules) for kind, rules in table.items()})
