"""Violation Reporter: dedupe and total ordering of violation records."""

from collections.abc import Iterable

from design_guide_linter.domain.rules import Violation


class ViolationReporter:
    """Pure merge step. Accepts partial result sets in any order."""

    def report(self, violations: Iterable[Violation]) -> list[Violation]:
        """Sort, then drop (rule_id, span) repeats keeping the lowest-ordered record."""
        seen: set[tuple[object, ...]] = set()
        reported: list[Violation] = []
        for violation in sorted(violations, key=lambda v: v.sort_key):
            if violation.dedupe_key in seen:
                continue
            seen.add(violation.dedupe_key)
            reported.append(violation)
        return reported

    def merge(self, *partials: Iterable[Violation]) -> list[Violation]:
        """Report over the union of several partial result sets."""
        return self.report(v for partial in partials for v in partial)
