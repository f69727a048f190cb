import base64
from dataclasses import dataclass, field

@dataclass(frozen=True)
class DocumentHandle:
    """
    Immutable in-memory copy of a loaded document.

    Replaced wholesale when a new file is loaded; nothing ever edits the bytes
    in place, so the flatten pipeline can always re-parse the original.
    """
    data: bytes = field(repr=False)  # Raw document bytes
    file_name: str                   # Base name of the source file
    media_type: str = "application/pdf"

    @property
    def size(self) -> int:
        """Number of bytes held by the handle."""
        return len(self.data)

    @property
    def data_url(self) -> str:
        """Display-addressable form of the document."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"
