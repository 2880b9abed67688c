"""
Mealwise - Meal plan PDF export.

Renders a normalized plan with fpdf2: a title block, one page per day with
meals in breakfast -> lunch -> dinner -> snack order, and an optional
shopping list page with the budget estimate summary. Every page carries the
estimate disclaimer in its footer.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from mealwise.budget.models import BudgetEstimate
from mealwise.config import ESTIMATE_DISCLAIMER
from mealwise.core.categories import CATEGORY_LABELS
from mealwise.core.modes import mode_label
from mealwise.errors import RenderError
from mealwise.planning.normalizer import (
    ExportMealPlan,
    ExportPlanItem,
    day_heading,
    group_plan_by_day,
    meal_type_label,
    plan_date_label,
    summarize_instructions,
)
from mealwise.shopping.aggregator import group_by_category
from mealwise.shopping.models import ShoppingListItem
from mealwise.tools.units import format_ingredient_line, format_quantity_value

logger = logging.getLogger(__name__)

MAX_STEPS = 6

# Core fonts only cover Latin-1
_REPLACEMENTS = {
    "\u2013": "-",
    "\u2014": "-",
    "\u2022": "-",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2026": "...",
}


def pdf_text(value: object) -> str:
    """Reduce text to what the core fonts can encode."""
    text = str(value)
    for source, target in _REPLACEMENTS.items():
        text = text.replace(source, target)
    return text.encode("latin-1", "replace").decode("latin-1")


class MealPlanPDF(FPDF):
    """A4 document with the disclaimer and page number in every footer."""

    def __init__(self, disclaimer: str):
        super().__init__(orientation="P", unit="mm", format="A4")
        self.disclaimer = disclaimer
        self.set_margins(15, 15, 15)
        self.set_auto_page_break(auto=True, margin=22)

    def footer(self):
        self.set_y(-16)
        self.set_font("helvetica", "I", 8)
        self.set_text_color(120)
        self.cell(0, 4, pdf_text(self.disclaimer), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.cell(0, 4, f"Page {self.page_no()}", align="C")
        self.set_text_color(0)

    def line_text(self, text: str, size: int = 10, style: str = "", height: float = 5) -> None:
        self.set_font("helvetica", style, size)
        self.multi_cell(0, height, pdf_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _meal_details(item: ExportPlanItem) -> str:
    recipe = item.recipe
    servings = item.servings or recipe.servings_default
    parts = [meal_type_label(item.meal_type)]
    if servings:
        parts[0] += f" - Serves {servings}"
    if recipe.total_time_minutes is not None:
        parts.append(f"{recipe.total_time_minutes} min")
    if recipe.calories is not None:
        parts.append(f"{recipe.calories} kcal")
    return " | ".join(parts)


def _render_meal(pdf: MealPlanPDF, item: ExportPlanItem) -> None:
    recipe = item.recipe
    pdf.line_text(recipe.title, size=12, style="B", height=6)
    pdf.set_text_color(90)
    pdf.line_text(_meal_details(item), size=9)
    if recipe.diet_tags:
        pdf.line_text(" / ".join(tag.replace("-", " ").title() for tag in recipe.diet_tags), size=9, style="I")
    pdf.set_text_color(0)

    if recipe.ingredients:
        pdf.ln(1)
        pdf.line_text("Ingredients", size=10, style="B")
        for ingredient in recipe.ingredients:
            pdf.line_text(f"- {format_ingredient_line(ingredient.quantity, ingredient.unit, ingredient.name)}")

    steps = summarize_instructions(recipe.steps, MAX_STEPS)
    if steps:
        pdf.ln(1)
        pdf.line_text("Steps", size=10, style="B")
        for number, step in enumerate(steps, start=1):
            pdf.line_text(f"{number}. {step}")
    pdf.ln(4)


def _render_shopping_list(
    pdf: MealPlanPDF,
    items: Iterable[ShoppingListItem],
    estimate: BudgetEstimate | None,
) -> None:
    pdf.add_page()
    pdf.line_text("Shopping List", size=16, style="B", height=8)
    pdf.ln(2)

    for category, members in group_by_category(items).items():
        pdf.line_text(CATEGORY_LABELS[category], size=11, style="B", height=6)
        for item in members:
            box = "[x]" if item.checked else "[ ]"
            pdf.line_text(f"{box} {item.name} - {format_quantity_value(item.quantity)} {item.unit}".rstrip())
        pdf.ln(2)

    if estimate is None:
        return

    view = estimate.view()
    pdf.ln(2)
    pdf.line_text(f"Budget estimate ({mode_label(view.mode)})", size=11, style="B", height=6)
    if view.locked:
        pdf.line_text("Estimate unavailable: not enough price data for a reliable total.")
        return
    if view.total is not None:
        pdf.line_text(f"Estimated total: {view.total:.2f}")
    if view.confidence is not None:
        pdf.line_text(f"Confidence: {view.confidence.value.title()}")
    if view.missing_item_count:
        pdf.line_text(f"Items without price data: {view.missing_item_count}")


def render_meal_plan_pdf(
    plan: ExportMealPlan | None,
    *,
    user_name: str | None = None,
    shopping_list: Iterable[ShoppingListItem] | None = None,
    estimate: BudgetEstimate | None = None,
    disclaimer: str = ESTIMATE_DISCLAIMER,
    generated_at: datetime | None = None,
) -> bytes:
    """
    Render a meal plan PDF.

    Output is byte-identical for identical inputs when generated_at is given.

    Raises:
        RenderError: No plan, or fpdf2 failed
    """
    if plan is None:
        raise RenderError(detail="Meal plan is missing")

    try:
        pdf = MealPlanPDF(disclaimer)
        pdf.set_title("Meal Plan")
        pdf.set_author("Mealwise")
        pdf.set_creation_date(generated_at or datetime.now(timezone.utc))

        pdf.add_page()
        pdf.line_text("Meal Plan", size=20, style="B", height=10)
        pdf.line_text(f"{plan.days}-day plan - {plan_date_label(plan.start_date, plan.days)}", size=12, height=6)
        if user_name and user_name.strip():
            pdf.line_text(f"Prepared for {user_name.strip()}", size=10, style="I")
        pdf.ln(4)

        for index, day in enumerate(group_plan_by_day(plan)):
            if index > 0:
                pdf.add_page()
            pdf.line_text(day_heading(day), size=14, style="B", height=8)
            pdf.ln(1)
            if not day.items:
                pdf.line_text("No meals planned.", style="I")
            for item in day.items:
                _render_meal(pdf, item)

        if shopping_list is not None:
            _render_shopping_list(pdf, shopping_list, estimate)

        return bytes(pdf.output())
    except Exception as e:
        logger.exception("Meal plan PDF render failed")
        raise RenderError(detail=f"PDF render failed: {e}") from e
