"""Writers module for exporting timelines and fleet reports."""

from fleet_orders.writers.base import BaseWriter
from fleet_orders.writers.report_writer import ReportWriter

__all__ = ["BaseWriter", "ReportWriter"]
