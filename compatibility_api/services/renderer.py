"""Merge branch outcomes and render them as an embeddable HTML fragment."""

from dataclasses import dataclass, field
from html import escape

from compatibility_api.models.compatibility import CompatibilityRecord, PropertyFilter
from compatibility_api.services.ebay import BranchOutcome
from compatibility_api.services.normalizer import FilterGroup, group_filters

# Filter dimensions that name the query subject, in heading order
SUBJECT_PROPERTIES = ("Year", "Make", "Model")
FALLBACK_LABEL = "the selected criteria"


@dataclass
class MergedRow:
    record: CompatibilityRecord
    # Filters of the branch that produced this record
    filters: list[PropertyFilter]


@dataclass
class MergedResultSet:
    rows: list[MergedRow] = field(default_factory=list)
    failed_branches: int = 0

    def __len__(self) -> int:
        return len(self.rows)


def merge_outcomes(outcomes: list[BranchOutcome]) -> MergedResultSet:
    """Concatenate successful branches in issue order.

    Failed branches are dropped unless every branch failed, in which case
    the first failure is raised. Records are neither sorted nor deduplicated.
    """
    failures = [o.error for o in outcomes if not o.ok]
    if outcomes and len(failures) == len(outcomes):
        raise failures[0]

    merged = MergedResultSet(failed_branches=len(failures))
    for outcome in outcomes:
        if outcome.ok:
            merged.rows.extend(MergedRow(record=r, filters=outcome.filters) for r in outcome.records)
    return merged


def subject_label(group: FilterGroup, fallback: str = FALLBACK_LABEL) -> str:
    """Describe the query subject, e.g. ``2014, 2020 Ram 1500``."""
    parts = [", ".join(v for v in group[name] if v) for name in SUBJECT_PROPERTIES if name in group]
    parts = [p for p in parts if p]
    return " ".join(parts) if parts else fallback


def resolve_cell(details: dict[str, str], branch_group: FilterGroup, column: str) -> str:
    """Detail value, else the branch's single fixed filter value, else blank."""
    value = details.get(column)
    if value:
        return value
    fixed = branch_group.get(column, [])
    if len(fixed) == 1:
        return fixed[0]
    return ""


def render_row(row: MergedRow, columns: list[str]) -> str:
    details = row.record.as_dict()
    branch_group = group_filters(row.filters)
    cells = "\n".join(
        f'<td data-label="{escape(col)}">{escape(resolve_cell(details, branch_group, col))}</td>'
        for col in columns
    )
    return f"\n<tr>\n{cells}\n</tr>"


def render_table(merged: MergedResultSet, group: FilterGroup, columns: list[str]) -> str:
    label = escape(subject_label(group))

    if not merged.rows:
        return f"<p>No compatibility data found for {label}.</p>"

    header = "\n".join(f"<th>{escape(col)}</th>" for col in columns)
    rows = "".join(render_row(row, columns) for row in merged.rows)

    return f"""
<h2>Compatibility Results for {label}</h2>
<table class="responsive-table">
<thead>
<tr>
{header}
</tr>
</thead>
<tbody>{rows}
</tbody>
</table>"""


def error_fragment(message: str) -> str:
    return f'<p style="color: red;">{escape(message)}</p>'
