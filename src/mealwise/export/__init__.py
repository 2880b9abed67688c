"""Mealwise export: CSV and PDF renderers, filenames, and the export pipeline."""

from mealwise.export.csv_export import render_shopping_list_csv
from mealwise.export.filenames import (
    content_disposition,
    create_plan_filename,
    meal_plan_pdf_filename,
    shopping_list_csv_filename,
)
from mealwise.export.models import CSV_MIME_TYPE, PDF_MIME_TYPE, ExportArtifact
from mealwise.export.pdf_export import render_meal_plan_pdf
from mealwise.export.pipeline import build_meal_plan_export, build_shopping_list_export

__all__ = [
    "CSV_MIME_TYPE",
    "PDF_MIME_TYPE",
    "ExportArtifact",
    "build_meal_plan_export",
    "build_shopping_list_export",
    "content_disposition",
    "create_plan_filename",
    "meal_plan_pdf_filename",
    "render_meal_plan_pdf",
    "render_shopping_list_csv",
    "shopping_list_csv_filename",
]
