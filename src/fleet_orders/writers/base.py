"""Base classes for report writers."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class BaseWriter(ABC):
    """Writes named tables of flat rows into a single output directory."""

    def __init__(self, output_dir: str) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @abstractmethod
    def write_table(self, name: str, rows: list[dict[str, Any]]) -> Path | None:
        """Write one table; returns the file written, or None when rows is empty."""
