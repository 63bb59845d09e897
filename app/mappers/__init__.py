"""
app/mappers package marker.
"""

from app.mappers.document_mapper import (
    DocumentMappingError,
    map_document,
    map_documents,
    map_line_item,
)

__all__ = [
    "DocumentMappingError",
    "map_document",
    "map_documents",
    "map_line_item",
]
