"""Document models for rmsync."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

COLLECTION_TYPE = "CollectionType"
DOCUMENT_TYPE = "DocumentType"

# (attribute, JSON key, expected type) for each .metadata field
_JSON_FIELDS = (
    ('deleted', 'deleted', bool),
    ('last_modified', 'lastModified', str),
    ('metadata_modified', 'metadatamodified', bool),
    ('modified', 'modified', bool),
    ('parent_id', 'parent', str),
    ('pinned', 'pinned', bool),
    ('synced', 'synced', bool),
    ('type', 'type', str),
    ('version', 'version', int),
    ('visible_name', 'visibleName', str),
)


@dataclass
class DocumentRecord:
    """One parsed .metadata file from the tablet's storage."""
    deleted: bool = False
    last_modified: str = ""     # Opaque timestamp string, never interpreted
    metadata_modified: bool = False
    modified: bool = False
    parent_id: str = ""         # Empty for items at the root
    pinned: bool = False
    synced: bool = False
    type: str = ""
    version: int = 0
    visible_name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentRecord":
        """Build a record from the JSON keys used on the tablet.

        Missing or null keys keep their zero value.

        Raises:
            TypeError: If a key holds a value of the wrong JSON type
        """
        values = {}
        for attr, key, kind in _JSON_FIELDS:
            value = data.get(key)
            if value is None:
                continue
            # bool is an int subclass, so a JSON true must not pass as a version
            if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
                raise TypeError(f"'{key}' should be {kind.__name__}, got {type(value).__name__}")
            values[attr] = value
        return cls(**values)

    @property
    def is_collection(self) -> bool:
        return self.type == COLLECTION_TYPE

    @property
    def is_document(self) -> bool:
        return self.type == DOCUMENT_TYPE


@dataclass
class DiscoveredFile:
    """A collection or document found on the tablet."""
    path: Path              # .metadata file for collections, content file for documents
    display_name: str


@dataclass
class SyncRequest:
    """A document that should exist on the tablet."""
    name: str               # Display name on the tablet, also the uploaded filename
    source_url: str


@dataclass
class SyncReport:
    """Outcome of a completed sync pass."""
    uploaded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def upload_count(self) -> int:
        return len(self.uploaded)
