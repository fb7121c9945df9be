"""Export module for CSV output."""

from .csv_export import CSVExporter, ExportResult

__all__ = ["CSVExporter", "ExportResult"]
