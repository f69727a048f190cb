from dataclasses import dataclass
from typing import Optional

from core.exceptions import EditorError

@dataclass
class ExportResult:
    """
    Outcome of a single flatten & export invocation.
    """
    success: bool                         # True once the artifact was delivered
    error: Optional[EditorError] = None   # Terminal error when success is False
    output_path: Optional[str] = None     # Where the artifact was written
    page_index: Optional[int] = None      # Page the overlay was flattened onto
    byte_count: int = 0                   # Size of the serialized document

    @property
    def message(self) -> str:
        """Single user-facing diagnostic line."""
        if self.success:
            return f"Saved {self.output_path} ({self.byte_count} bytes)"
        return str(self.error) if self.error else "Export failed"
