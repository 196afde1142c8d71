"""
Services layer for travel expense claims.

``document_export`` renders a calculated claim as a PDF document.
"""

from travel_services.document_export import (
    document_file_name,
    export_expense_pdf,
    render_expense_pdf,
)

__all__ = [
    "document_file_name",
    "export_expense_pdf",
    "render_expense_pdf",
]
