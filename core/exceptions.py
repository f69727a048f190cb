"""
Error taxonomy for document loading and the flatten/export pipeline.
"""


class EditorError(Exception):
    """Base class for all editor errors surfaced to the user."""

    user_message = "Operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.user_message)


class InvalidInputType(EditorError):
    """The selected file is not a PDF document."""

    user_message = "Only PDF documents can be opened"

    def __init__(self, file_name: str = "", media_type: str = None):
        self.file_name = file_name
        self.media_type = media_type
        super().__init__(
            f"Rejected '{file_name}': media type {media_type or 'unknown'} is not supported"
        )


class NoDocumentLoaded(EditorError):
    """Export was requested before any document was loaded."""

    user_message = "No document loaded"


class NoSurface(EditorError):
    """Export was requested while no overlay surface exists."""

    user_message = "No annotation surface available"


class DocumentParseError(EditorError):
    """The original document bytes could not be parsed."""

    user_message = "The document could not be parsed"


class PageIndexOutOfRange(EditorError):
    """The target page index does not exist in the parsed document."""

    def __init__(self, page_index: int, page_count: int):
        self.page_index = page_index
        self.page_count = page_count
        super().__init__(
            f"Page index {page_index} is out of range for a document with {page_count} pages"
        )


class SaveFailed(EditorError):
    """Rasterizing, embedding, serializing or writing the result failed."""

    user_message = "Saving the annotated document failed"
