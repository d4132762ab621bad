from typing import TypedDict


class RuleRegistryEntry(TypedDict, total=False):
    display_name: str
    short_description: str
    rationale: str
    manual_instructions: str
    references: list[str]
    severity: str
