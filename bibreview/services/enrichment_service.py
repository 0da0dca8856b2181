"""Fill in missing abstract and full-text URL fields from the source site."""

import logging
from typing import Iterator, Optional

from bibreview.errors import (
    EnrichmentError,
    MissingUrlError,
    NotSupportedError,
    ReviewError,
)
from bibreview.models.record import ABSTRACT, FULL_TEXT_URL, URL, Record
from bibreview.services.annotation_policy import AnnotationPolicy
from bibreview.services.field_store import FieldStore
from bibreview.services.site_fetchers import SiteFetcherRegistry

logger = logging.getLogger(__name__)


class EnrichmentService:
    """Fetch supplementary metadata for a record and write what is missing."""

    def __init__(
        self,
        store: FieldStore,
        policy: AnnotationPolicy,
        registry: SiteFetcherRegistry,
        report_unsupported: bool = False,
    ):
        """Initialize enrichment service.

        Args:
            store: Field access for the document being reviewed
            policy: Decides whether enrichment is needed
            registry: Site fetchers keyed by domain
            report_unsupported: Report unknown sites instead of skipping quietly
        """
        self.store = store
        self.policy = policy
        self.registry = registry
        self.report_unsupported = report_unsupported

    def enrich(self, record: Record) -> list[str]:
        """Enrich ``record`` in place.

        Both fetches complete before anything is written; any failure
        propagates and leaves the record untouched.

        Returns:
            Names of the fields written (empty when nothing was needed)

        Raises:
            MissingUrlError: If the record has no url field
            MalformedUrlError, NotSupportedError, FetchError: From the fetchers
        """
        if not self.policy.should_enrich(record):
            return []

        url = self.store.get(record, URL)
        if not isinstance(url, str) or not url.strip():
            raise MissingUrlError(record.key)

        abstract_url, full_text_url = self.registry.fetch_links(url.strip())
        abstract = self.registry.fetch_abstract(abstract_url)

        written: list[str] = []
        with self.store.at(record):
            for name, value in ((ABSTRACT, abstract), (FULL_TEXT_URL, full_text_url)):
                # Re-read at write time: only fill fields that are still empty
                current = self.store.parse(record.start)
                if not self.policy.needs_field(current, name):
                    continue
                self.store.add_field_if_absent(name, current)
                self.store.write(name, value)
                written.append(name)

        if written:
            logger.info("Enriched %s: %s", record.key, ", ".join(written))
        return written

    def try_enrich(self, record: Record) -> tuple[list[str], Optional[ReviewError]]:
        """Enrich ``record``, turning fetch and write failures into a return value.

        Unknown sites are skipped quietly unless ``report_unsupported`` is set.

        Returns:
            Tuple of (fields written, error or None)
        """
        try:
            return self.enrich(record), None
        except NotSupportedError as e:
            logger.debug("Skipping %s: %s", record.key, e)
            return [], e if self.report_unsupported else None
        except EnrichmentError as e:
            logger.warning("Enrichment of %s failed: %s", record.key, e)
            return [], e
        except ReviewError as e:
            # Fetched text that could not be written back
            logger.warning("Could not write enrichment for %s: %s", record.key, e)
            return [], e

    def enrich_all(self) -> Iterator[tuple[Record, list[str], Optional[ReviewError]]]:
        """Enrich every record in the document, in order."""
        with self.store.document.excursion():
            for record in self.store.iter_records():
                written, error = self.try_enrich(record)
                yield record, written, error
