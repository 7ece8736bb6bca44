"""Import engine for bulk question imports."""

from app.services.importer.reconciler import BatchReport, BulkImportReconciler, RowOutcome
from app.services.importer.row_source import parse_rows

__all__ = [
    "BatchReport",
    "BulkImportReconciler",
    "RowOutcome",
    "parse_rows",
]
