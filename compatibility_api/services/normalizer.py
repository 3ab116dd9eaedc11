"""Turn a caller's filter list into a lookup plan.

A plan is either a single upstream call carrying the caller's filters
untouched, or a fan-out: one call per value of the multi-valued dimension
(``Year`` unless configured otherwise), every other filter held constant.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from compatibility_api.models.compatibility import PropertyFilter

FilterGroup = dict[str, list[str]]


class LookupMode(str, Enum):
    SINGLE = "single"
    FAN_OUT = "fan_out"


@dataclass
class LookupPlan:
    mode: LookupMode
    filters: list[PropertyFilter]
    group: FilterGroup
    property_names: list[str]
    category_id: str
    fan_out_property: Optional[str] = None
    # The caller's filters on the fan-out property, one per branch
    fan_out_filters: list[PropertyFilter] = field(default_factory=list)

    @property
    def fan_out_values(self) -> list[str]:
        return [f.propertyValue or "" for f in self.fan_out_filters]

    def branches(self) -> list[list[PropertyFilter]]:
        """Filter sequences for each upstream call, in issue order."""
        if self.mode is LookupMode.SINGLE:
            return [list(self.filters)]

        fixed = [f for f in self.filters if f.propertyName != self.fan_out_property]
        return [fixed + [f] for f in self.fan_out_filters]


def group_filters(filters: list[PropertyFilter]) -> FilterGroup:
    """Group filter values by property name, keeping input order and duplicates.

    Filters without a name are skipped here only; they still travel upstream
    on the single-call path.
    """
    group: FilterGroup = {}
    for f in filters:
        if not f.propertyName:
            continue
        group.setdefault(f.propertyName, []).append(f.propertyValue or "")
    return group


def normalize(
    filters: list[PropertyFilter],
    property_names: list[str],
    category_id: Optional[str],
    *,
    default_category_id: str,
    fan_out_property: str = "Year",
) -> LookupPlan:
    group = group_filters(filters)
    values = group.get(fan_out_property, [])

    plan = LookupPlan(
        mode=LookupMode.SINGLE,
        filters=list(filters),
        group=group,
        property_names=list(property_names),
        category_id=category_id or default_category_id,
    )
    if len(values) > 1:
        plan.mode = LookupMode.FAN_OUT
        plan.fan_out_property = fan_out_property
        plan.fan_out_filters = [f for f in filters if f.propertyName == fan_out_property]
    return plan
