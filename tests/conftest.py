"""
Pytest configuration and fixtures for bibreview tests.
"""

from typing import Optional

import pytest

from bibreview.config import ReviewContext, Settings
from bibreview.document.buffer import BibDocument
from bibreview.errors import FetchError
from bibreview.services.annotation_policy import AnnotationPolicy
from bibreview.services.enrichment_service import EnrichmentService
from bibreview.services.field_store import FieldStore
from bibreview.services.review_navigator import ReviewNavigator
from bibreview.services.site_fetchers import PageClient, SiteFetcherRegistry


# ============================================
# Sample documents
# ============================================

SAMPLE_BIB = """@inproceedings{key1,
  title = {Mining Software Repositories},
  author = {Ada Lovelace and Alan Turing},
  url = {http://dl.acm.org/ft_gateway.cfm?id=1},
  year = {2010}
}

@article{key2,
  title = {Already Enriched},
  author = {Grace Hopper},
  url = {http://dl.acm.org/citation.cfm?id=2},
  abstract = {An existing abstract.},
  fullTextUrl = {https://dl.acm.org/doi/pdf/10.1/2},
  year = {2011}
}

@misc{key3,
  title = {Unknown Site},
  author = {Edsger Dijkstra},
  url = {https://www.example.org/paper},
  year = {2012}
}
"""

LISTING_URL = "http://dl.acm.org/ft_gateway.cfm?id=1"
ABSTRACT_URL = "https://dl.acm.org/tab_abstract.cfm?id=1&usebody=tabbody"
FULL_TEXT_URL = "https://dl.acm.org/ft_gateway.cfm?id=1&ftid=9&dwn=1"

LISTING_PAGE = (
    "<html><body>"
    '<a href="tab_abstract.cfm?id=1&amp;usebody=tabbody">Abstract</a> '
    '<a href="ft_gateway.cfm?id=1&amp;ftid=9&amp;dwn=1">PDF</a>'
    "</body></html>"
)
ABSTRACT_PAGE = (
    "<div><p>We study <b>software</b>\n repositories.</p><p>Second paragraph.</p></div>"
)

PAGES = {
    LISTING_URL: LISTING_PAGE,
    ABSTRACT_URL: ABSTRACT_PAGE,
}


class FakeClient(PageClient):
    """Serves canned pages and records every URL requested."""

    def __init__(self, pages: Optional[dict[str, str]] = None):
        super().__init__(contact_email="test@example.org", timeout=1)
        self.pages = dict(PAGES if pages is None else pages)
        self.calls: list[str] = []

    def get(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(f"Could not retrieve {url}: 404", url)
        return self.pages[url]


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def document():
    return BibDocument(SAMPLE_BIB)


@pytest.fixture
def store(document):
    return FieldStore(document)


@pytest.fixture
def policy(store):
    return AnnotationPolicy(store)


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def registry(client):
    return SiteFetcherRegistry(client)


@pytest.fixture
def enricher(store, policy, registry):
    return EnrichmentService(store, policy, registry)


@pytest.fixture
def navigator(document, registry):
    return ReviewNavigator(ReviewContext(reviewer_id="alice", document=document), registry=registry)


@pytest.fixture
def fresh_settings():
    """Make sure each test builds its own Settings singleton."""
    Settings.reset()
    yield
    Settings.reset()
