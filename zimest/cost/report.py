"""BOQ totals and Markdown rendering of a generated bill of quantities."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from zimest.cost.enums import LABOR_CATEGORY, PHASE_LABELS
from zimest.cost.models import GeneratedBOQItem


class CategoryTotal(BaseModel):
    usd: float = 0.0
    local: float = 0.0
    count: int = 0


class BOQTotals(BaseModel):
    """Overall and per-category totals for a list of BOQ items."""

    total_usd: float = 0.0
    total_local: float = 0.0
    item_count: int = 0
    by_category: dict[str, CategoryTotal] = Field(default_factory=dict)

    def to_markdown(self, items: Iterable[GeneratedBOQItem] = ()) -> str:
        """Render a BOQ summary, followed by the item lines when given."""
        lines: list[str] = []

        lines.append("# Bill of Quantities")
        lines.append("")
        lines.append(f"**Items:** {self.item_count}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append("| Category | Items | Amount (USD) | Amount (local) |")
        lines.append("|----------|-------|-------------|----------------|")
        for category, total in self.by_category.items():
            label = _category_label(category)
            lines.append(f"| {label} | {total.count} | ${total.usd:,.2f} | {total.local:,.2f} |")
        lines.append(
            f"| **Total** | **{self.item_count}** | **${self.total_usd:,.2f}** "
            f"| **{self.total_local:,.2f}** |"
        )
        lines.append("")

        items = list(items)
        if items:
            lines.append("## Items")
            lines.append("")
            lines.append("| Id | Material | Qty | Unit | Unit (USD) | Total (USD) | Note |")
            lines.append("|----|----------|-----|------|-----------|------------|------|")
            for item in items:
                lines.append(
                    f"| {item.id} | {item.material_name} | {item.quantity:g} | {item.unit} "
                    f"| ${item.unit_price_usd:,.2f} | ${item.total_usd:,.2f} "
                    f"| {item.calculation_note} |"
                )
            lines.append("")

        return "\n".join(lines)


def _category_label(category: str) -> str:
    if category == LABOR_CATEGORY:
        return "Labor"
    return PHASE_LABELS.get(category, category)


def calculate_totals(items: Iterable[GeneratedBOQItem]) -> BOQTotals:
    """Sum item totals overall and per category, in first-seen category order."""
    totals = BOQTotals()
    for item in items:
        bucket = totals.by_category.setdefault(item.category, CategoryTotal())
        bucket.usd += item.total_usd
        bucket.local += item.total_local
        bucket.count += 1
        totals.item_count += 1

    for bucket in totals.by_category.values():
        bucket.usd = round(bucket.usd, 2)
        bucket.local = round(bucket.local, 2)
    totals.total_usd = round(sum(b.usd for b in totals.by_category.values()), 2)
    totals.total_local = round(sum(b.local for b in totals.by_category.values()), 2)
    return totals
