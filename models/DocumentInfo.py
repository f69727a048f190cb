from dataclasses import dataclass

@dataclass
class DocumentInfo:
    """
    Document-level metadata reported once the renderer has parsed a document.
    """
    page_count: int                  # Total number of pages in the document
    title: str                       # PDF metadata title
    author: str                      # PDF metadata author
    subject: str                     # PDF metadata subject
    file_name: str                   # Name of the file the handle was read from
