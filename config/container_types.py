"""
Container type configuration for products created by spreadsheet imports.

Unit text from a client spreadsheet ("Case", "750ml bottle", "Keg") is mapped
to a product container type with keyword rules. Rules are evaluated in order
and the first hit wins; unmatched text falls back to "other".

Rules and units-per-case defaults can be replaced without code changes via
CONTAINER_UNIT_RULES / CONTAINER_UNITS_PER_CASE (JSON) in the environment.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from config.settings import settings

# =============================================================================
# CONTAINER TYPES
# =============================================================================

FALLBACK_CONTAINER_TYPE = "other"

CONTAINER_TYPES = [
    "bottle",
    "can",
    "keg",
    "bag_in_box",
    "merchandise",
    "sample",
    "gift_box",
    "empty_bottle",
    "other",
]


# =============================================================================
# UNIT KEYWORD RULES
# =============================================================================
# (keyword, container_type, match) where match is "contains" or "equals".
# Order matters: "bottle" must be tested before "case" so "Case of bottles"
# maps to bottle, and "case" itself defaults to bottle (cases hold bottles).

DEFAULT_UNIT_RULES: list[tuple[str, str, str]] = [
    ("bottle", "bottle", "contains"),
    ("can", "can", "contains"),
    ("keg", "keg", "contains"),
    ("bag", "bag_in_box", "contains"),
    ("piece", "merchandise", "contains"),
    ("each", "merchandise", "contains"),
    ("ml", "sample", "equals"),
    ("box", "gift_box", "contains"),
    ("case", "bottle", "contains"),
]


# =============================================================================
# UNITS PER CASE
# =============================================================================

DEFAULT_UNITS_PER_CASE: dict[str, int] = {
    "bottle": 6,
    "can": 24,
    "keg": 1,
    "empty_bottle": 6,
}

FALLBACK_UNITS_PER_CASE = 1


@dataclass(frozen=True)
class UnitRule:
    """Single keyword rule."""
    keyword: str
    container_type: str
    match: str = "contains"

    def matches(self, unit: str) -> bool:
        if self.match == "equals":
            return unit == self.keyword
        return self.keyword in unit


class ContainerTypeMapping:
    """
    Maps free-text unit strings to container types.

    Usage:
        mapping = ContainerTypeMapping.default()
        mapping.infer("Case")          # "bottle"
        mapping.units_per_case("can")  # 24
    """

    def __init__(
        self,
        rules: list[UnitRule],
        units_per_case: dict[str, int],
        fallback: str = FALLBACK_CONTAINER_TYPE,
    ):
        self.rules = rules
        self._units_per_case = units_per_case
        self.fallback = fallback

    @classmethod
    def default(cls) -> "ContainerTypeMapping":
        return cls(
            rules=[UnitRule(k, t, m) for k, t, m in DEFAULT_UNIT_RULES],
            units_per_case=dict(DEFAULT_UNITS_PER_CASE),
        )

    @classmethod
    def from_config(
        cls,
        rules: Optional[list[dict[str, str]]] = None,
        units_per_case: Optional[dict[str, int]] = None,
    ) -> "ContainerTypeMapping":
        """
        Build a mapping from configuration, falling back to defaults.

        Args:
            rules: Replacement rule list, e.g. [{"keyword": "tin", "container_type": "can"}]
            units_per_case: Overrides merged over DEFAULT_UNITS_PER_CASE

        Returns:
            ContainerTypeMapping
        """
        mapping = cls.default()
        if rules:
            mapping.rules = [
                UnitRule(
                    keyword=r["keyword"].strip().lower(),
                    container_type=r["container_type"],
                    match=r.get("match", "contains"),
                )
                for r in rules
            ]
        if units_per_case:
            mapping._units_per_case.update(units_per_case)
        return mapping

    def infer(self, unit: Optional[str]) -> str:
        """Container type for a unit string; fallback when nothing matches."""
        u = (unit or "").strip().lower()
        if not u:
            return self.fallback
        for rule in self.rules:
            if rule.matches(u):
                return rule.container_type
        return self.fallback

    def units_per_case(self, container_type: str) -> int:
        return self._units_per_case.get(container_type, FALLBACK_UNITS_PER_CASE)

    def is_known(self, container_type: str) -> bool:
        """Built-in types plus any a configured rule produces."""
        return (
            container_type in CONTAINER_TYPES
            or any(rule.container_type == container_type for rule in self.rules)
        )


@lru_cache()
def get_container_type_mapping() -> ContainerTypeMapping:
    """Cached mapping built from settings."""
    return ContainerTypeMapping.from_config(
        rules=settings.container_unit_rules,
        units_per_case=settings.container_units_per_case,
    )
