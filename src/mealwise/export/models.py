"""Rendered export artifacts."""

from dataclasses import dataclass

from mealwise.export.filenames import content_disposition

PDF_MIME_TYPE = "application/pdf"
CSV_MIME_TYPE = "text/csv; charset=utf-8"


@dataclass(frozen=True)
class ExportArtifact:
    """A finished download: bytes plus how to serve them."""

    mime_type: str
    filename: str
    content: bytes

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": self.mime_type,
            "Content-Disposition": content_disposition(self.filename),
            "Cache-Control": "no-store",
        }
