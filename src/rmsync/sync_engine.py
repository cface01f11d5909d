"""Sync engine for reconciling desired documents with the tablet."""

from collections import Counter
from typing import Iterable, List, Set
from loguru import logger

from rmsync.document import DiscoveredFile, SyncRequest, SyncReport
from rmsync.platforms.xochitl import MetadataStore
from rmsync.platforms.web import ContentFetcher
from rmsync.platforms.tablet import TabletClient


def build_inventory(files: Iterable[DiscoveredFile]) -> Set[str]:
    """Collect the display names of documents already on the tablet."""
    return {f.display_name for f in files}


class SyncEngine:
    """Upload every requested document the tablet does not have yet."""

    def __init__(self, store: MetadataStore, fetcher: ContentFetcher, uploader: TabletClient):
        self.store = store
        self.fetcher = fetcher
        self.uploader = uploader
        logger.debug("SyncEngine initialized")

    def sync(self, requests: List[SyncRequest]) -> SyncReport:
        """
        Run one reconciliation pass.

        The tablet is scanned once up front. Requests are then handled in
        order: names already present are skipped, the rest are fetched and
        uploaded under their name. The inventory is not refreshed during the
        pass, so two requests sharing a missing name are both uploaded.

        Args:
            requests: Desired documents, in processing order

        Returns:
            SyncReport listing uploaded and skipped names

        Raises:
            ScanError: If the tablet's metadata cannot be read
            FetchError: On the first failed download; later requests are not attempted
            UploadError: On the first failed upload; later requests are not attempted
        """
        logger.debug("Scanning tablet documents in {}", self.store.base_dir)
        inventory = build_inventory(self.store.list_documents())
        logger.info("Tablet has {} documents, {} requested", len(inventory), len(requests))

        duplicates = [name for name, count in Counter(r.name for r in requests).items() if count > 1]
        if duplicates:
            logger.warning("Duplicate names in sync request: {}", ", ".join(duplicates))

        report = SyncReport()
        for index, request in enumerate(requests, start=1):
            if request.name in inventory:
                logger.debug("Already on tablet: {}", request.name)
                report.skipped.append(request.name)
                continue

            logger.info("[{}/{}] Fetching: {}", index, len(requests), request.name)
            content = self.fetcher.fetch(request.source_url)

            logger.info("[{}/{}] Uploading: {} ({:.2f} MB)", index, len(requests),
                        request.name, len(content) / (1024 * 1024))
            self.uploader.upload(content, request.name)

            logger.success("✓ Uploaded: {}", request.name)
            report.uploaded.append(request.name)

        logger.info("Sync complete: {} uploaded, {} already present",
                    len(report.uploaded), len(report.skipped))
        return report
