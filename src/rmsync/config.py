"""Configuration management for rmsync.

The config file holds two tables:

    [device]
    base_dir = "/home/root/.local/share/remarkable/xochitl/"
    upload_url = "http://10.11.99.1/upload"
    timeout = 300.0

    [documents]
    "Reading List" = "https://example.com/reading.pdf"
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import List, Optional
import toml
from loguru import logger

from rmsync.document import SyncRequest
from rmsync.platforms.xochitl import DEFAULT_BASE_DIR
from rmsync.platforms.tablet import DEFAULT_UPLOAD_URL, DEFAULT_TIMEOUT

CONFIG_DIR = Path.home() / ".rmsync"


@dataclass
class DeviceSettings:
    """Where the tablet keeps its documents and where it accepts uploads."""
    base_dir: str = DEFAULT_BASE_DIR
    upload_url: str = DEFAULT_UPLOAD_URL
    timeout: float = DEFAULT_TIMEOUT  # seconds, per fetch and per upload
    metadata_extension: str = ".metadata"
    content_extension: str = ".pdf"

    @property
    def base_path(self) -> Path:
        """Get base directory as Path object."""
        return Path(self.base_dir).expanduser()


class Config:
    """Device settings and the desired document list in ~/.rmsync/config.toml."""

    def __init__(self, config_dir: Path = CONFIG_DIR):
        self.config_file = config_dir / "config.toml"
        config_dir.mkdir(parents=True, exist_ok=True)

    def exists(self) -> bool:
        return self.config_file.exists()

    def load(self) -> dict:
        """Read the config file; a missing or unreadable file counts as empty."""
        if not self.exists():
            return {}
        try:
            return toml.load(self.config_file)
        except (OSError, toml.TomlDecodeError) as e:
            logger.error("Ignoring unreadable config {}: {}", self.config_file, e)
            return {}

    def save(self, config_data: dict):
        try:
            self.config_file.write_text(toml.dumps(config_data))
        except OSError as e:
            logger.error("Failed to write config {}: {}", self.config_file, e)
            raise
        logger.debug("Wrote {}", self.config_file)

    def get_device(self) -> DeviceSettings:
        """Get device settings, falling back to the tablet's defaults."""
        stored = self.load().get('device', {})
        settings = DeviceSettings(**{key: stored[key] for key in asdict(DeviceSettings()) if key in stored})
        settings.timeout = float(settings.timeout)
        return settings

    def save_device(self, settings: DeviceSettings):
        data = self.load()
        data['device'] = asdict(settings)
        self.save(data)
        logger.info("Device settings saved")

    def _documents_table(self, data: dict) -> dict:
        table = data.get('documents', {})
        if not isinstance(table, dict):
            logger.warning("Ignoring [documents]: expected a table of name = \"url\" pairs")
            return {}
        return table

    def list_documents(self) -> List[SyncRequest]:
        """List the desired documents in file order, skipping malformed entries."""
        requests = []
        for name, url in self._documents_table(self.load()).items():
            if not isinstance(url, str) or not url:
                logger.warning("Skipping document '{}': URL must be a non-empty string", name)
                continue
            requests.append(SyncRequest(name=name, source_url=url))
        return requests

    def get_document(self, name: str) -> Optional[SyncRequest]:
        """Get a desired document by name."""
        return next((doc for doc in self.list_documents() if doc.name == name), None)

    def add_document(self, request: SyncRequest):
        """Add a desired document, replacing the URL of an entry with the same name."""
        data = self.load()
        documents = self._documents_table(data)
        documents[request.name] = request.source_url
        data['documents'] = documents
        self.save(data)
        logger.info("Document added: {}", request.name)

    def remove_document(self, name: str) -> bool:
        """Remove a desired document.

        Returns:
            True if an entry was removed
        """
        data = self.load()
        documents = self._documents_table(data)
        if name not in documents:
            logger.warning("Document not found for removal: {}", name)
            return False

        del documents[name]
        data['documents'] = documents
        self.save(data)
        logger.info("Document removed: {}", name)
        return True
