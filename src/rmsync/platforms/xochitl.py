"""Reader for the tablet's on-disk metadata store."""

import json
import os
from pathlib import Path
from typing import List
from loguru import logger

from rmsync.document import DiscoveredFile, DocumentRecord
from rmsync.errors import ScanError

DEFAULT_BASE_DIR = "/home/root/.local/share/remarkable/xochitl/"


def _raise_walk_error(error: OSError):
    raise error


class MetadataStore:
    """List collections and documents stored under the xochitl data directory."""

    def __init__(self, base_dir: Path, metadata_extension: str = ".metadata",
                 content_extension: str = ".pdf"):
        self.base_dir = Path(base_dir)
        self.metadata_extension = metadata_extension
        self.content_extension = content_extension
        logger.debug("MetadataStore initialized: base_dir={}", self.base_dir)

    def list_collections(self) -> List[DiscoveredFile]:
        """List every collection (folder) on the tablet.

        Returns:
            One entry per CollectionType record, pointing at its .metadata file

        Raises:
            ScanError: If the tree cannot be walked or any record is malformed
        """
        collections = []
        for metadata_path in self._metadata_paths():
            record = self._read_record(metadata_path)
            if record.is_collection:
                collections.append(DiscoveredFile(metadata_path, record.visible_name))

        logger.debug("Found {} collections in {}", len(collections), self.base_dir)
        return collections

    def list_documents(self) -> List[DiscoveredFile]:
        """List every document whose content file is present on the tablet.

        A DocumentType record without its sibling content file is left out.

        Returns:
            One entry per document, pointing at its content file

        Raises:
            ScanError: If the tree cannot be walked or any record is malformed
        """
        documents = []
        for metadata_path in self._metadata_paths():
            record = self._read_record(metadata_path)
            if not record.is_document:
                continue

            content_path = metadata_path.with_suffix(self.content_extension)
            if content_path.exists():
                documents.append(DiscoveredFile(content_path, record.visible_name))
            else:
                logger.debug("Skipping document without content file: {}", metadata_path.name)

        logger.debug("Found {} documents in {}", len(documents), self.base_dir)
        return documents

    def _metadata_paths(self) -> List[Path]:
        """Walk the base directory and collect .metadata files in sorted order."""
        if not self.base_dir.is_dir():
            logger.error("Metadata directory not found: {}", self.base_dir)
            raise ScanError(f"Metadata directory not found: {self.base_dir}", self.base_dir)

        paths = []
        try:
            for root, dirs, files in os.walk(self.base_dir, onerror=_raise_walk_error):
                dirs.sort()
                for name in sorted(files):
                    if os.path.splitext(name)[1] == self.metadata_extension:
                        paths.append(Path(root) / name)
        except OSError as e:
            logger.error("Failed to walk {}: {}", self.base_dir, e)
            raise ScanError(f"Failed to walk {self.base_dir}: {e}", self.base_dir) from e

        logger.debug("Walked {}: {} metadata files", self.base_dir, len(paths))
        return paths

    def _read_record(self, metadata_path: Path) -> DocumentRecord:
        """Parse one .metadata file."""
        try:
            data = json.loads(metadata_path.read_text(encoding='utf-8'))
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read metadata file {}: {}", metadata_path, e)
            raise ScanError(f"Failed to read {metadata_path}: {e}", metadata_path) from e
        except json.JSONDecodeError as e:
            logger.error("Invalid metadata file {}: {}", metadata_path, e)
            raise ScanError(f"Invalid metadata in {metadata_path}: {e}", metadata_path) from e

        if not isinstance(data, dict):
            logger.error("Metadata file {} is not a JSON object", metadata_path)
            raise ScanError(f"Invalid metadata in {metadata_path}: expected an object", metadata_path)

        try:
            return DocumentRecord.from_dict(data)
        except TypeError as e:
            logger.error("Invalid field in metadata file {}: {}", metadata_path, e)
            raise ScanError(f"Invalid metadata in {metadata_path}: {e}", metadata_path) from e
