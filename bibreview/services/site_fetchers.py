"""Per-site fetchers for abstract and full-text links.

Dispatch is a static table keyed by registrable domain (``acm.org``).
Each row pairs a links fetcher (listing page -> abstract URL, full-text
URL) with an abstract fetcher (abstract page -> plain text). Adding a
site means adding a row to ``SITES``.
"""

import html
import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional
from urllib.parse import urljoin

import requests

from bibreview import __version__
from bibreview.errors import FetchError, MalformedUrlError, NotSupportedError
from bibreview.utils.text import clean_abstract, first_paragraph

logger = logging.getLogger(__name__)

# Host part of a URL, with or without a scheme
HOST_RE = re.compile(r"^\s*(?:[A-Za-z][A-Za-z0-9+.-]*://)?(?:[^@/\s]*@)?([^/\s:?#]+)")


class PageClient:
    """Blocking HTTP retrieval of page content."""

    def __init__(self, contact_email: Optional[str] = None, timeout: float = 20):
        """Initialize client.

        Args:
            contact_email: Added to the User-Agent so publishers can reach us
            timeout: Request timeout in seconds
        """
        self.contact_email = contact_email
        self.timeout = timeout
        self._headers = self._build_headers()

    def _build_headers(self) -> dict[str, str]:
        """Build HTTP headers with user agent."""
        agent = f"bibreview/{__version__}"
        if self.contact_email:
            agent += f" (mailto:{self.contact_email})"
        return {"User-Agent": agent}

    def get(self, url: str) -> str:
        """Return the body of ``url``.

        Raises:
            FetchError: On network errors or non-2xx responses
        """
        logger.debug("GET %s", url)
        try:
            response = requests.get(url, headers=self._headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Could not retrieve {url}: {e}", url) from e
        return response.text


LinksFetcher = Callable[[str, PageClient], tuple[str, str]]
AbstractFetcher = Callable[[str, PageClient], str]


@dataclass(frozen=True)
class SiteEntry:
    """Fetcher pair registered for one domain."""

    domain: str
    links: LinksFetcher
    abstract: AbstractFetcher


def pattern_links(base: str, abstract_re: str, full_text_re: str) -> LinksFetcher:
    """Build a links fetcher that scans a listing page for two link patterns.

    Each pattern's first group is the link; it is resolved against ``base``.
    """
    abstract_pattern = re.compile(abstract_re, re.IGNORECASE)
    full_text_pattern = re.compile(full_text_re, re.IGNORECASE)

    def fetch(url: str, client: PageClient) -> tuple[str, str]:
        page = client.get(url)
        abstract_match = abstract_pattern.search(page)
        full_text_match = full_text_pattern.search(page)
        if abstract_match is None or full_text_match is None:
            missing = "abstract" if abstract_match is None else "full-text"
            raise FetchError(f"No {missing} link found on {url}", url)
        return (
            urljoin(base, html.unescape(abstract_match.group(1))),
            urljoin(base, html.unescape(full_text_match.group(1))),
        )

    return fetch


def paragraph_abstract(url: str, client: PageClient) -> str:
    """Abstract text taken from the first ``<p>`` block of ``url``."""
    text = clean_abstract(first_paragraph(client.get(url)))
    if not text:
        raise FetchError(f"No abstract paragraph found on {url}", url)
    return text


_LINK = r"""["']({})["']"""

SITES: Mapping[str, SiteEntry] = MappingProxyType(
    {
        entry.domain: entry
        for entry in (
            SiteEntry(
                domain="acm.org",
                links=pattern_links(
                    "https://dl.acm.org/",
                    _LINK.format(r"/?tab_abstract\.cfm\?[^\"']+|/doi/abs/[^\"'#]+"),
                    _LINK.format(r"/?ft_gateway\.cfm\?[^\"']+|/doi/pdf/[^\"'#]+"),
                ),
                abstract=paragraph_abstract,
            ),
            SiteEntry(
                domain="ieee.org",
                links=pattern_links(
                    "https://ieeexplore.ieee.org/",
                    _LINK.format(r"/abstract/document/\d+/?"),
                    _LINK.format(r"/stamp/stamp\.jsp\?[^\"']+"),
                ),
                abstract=paragraph_abstract,
            ),
            SiteEntry(
                domain="springer.com",
                links=pattern_links(
                    "https://link.springer.com/",
                    _LINK.format(r"/(?:chapter|article)/[^\"'#]+"),
                    _LINK.format(r"/content/pdf/[^\"'#]+"),
                ),
                abstract=paragraph_abstract,
            ),
        )
    }
)


class SiteFetcherRegistry:
    """Look up and run the fetcher pair for a URL's site."""

    def __init__(
        self,
        client: Optional[PageClient] = None,
        sites: Mapping[str, SiteEntry] = SITES,
    ):
        self.client = client or PageClient()
        self.sites = sites

    @staticmethod
    def registrable_domain(url: str) -> str:
        """Last two dot-separated labels of the URL's host.

        >>> SiteFetcherRegistry.registrable_domain("https://dl.acm.org/doi/10.1/x")
        'acm.org'

        Raises:
            MalformedUrlError: If no host-like part is found
        """
        match = HOST_RE.match(url or "")
        labels = [label for label in match.group(1).split(".") if label] if match else []
        if len(labels) < 2:
            raise MalformedUrlError(f"No host found in URL '{url}'", url)
        return ".".join(labels[-2:]).lower()

    def lookup(self, domain: str) -> SiteEntry:
        """Return the fetcher pair for ``domain``.

        Raises:
            NotSupportedError: If the domain has no registered fetchers
        """
        entry = self.sites.get(domain.lower())
        if entry is None:
            raise NotSupportedError(domain)
        return entry

    def supports(self, url: str) -> bool:
        try:
            self.lookup(self.registrable_domain(url))
        except (MalformedUrlError, NotSupportedError):
            return False
        return True

    def fetch_links(self, url: str) -> tuple[str, str]:
        """Return ``(abstract_url, full_text_url)`` scraped from ``url``."""
        entry = self.lookup(self.registrable_domain(url))
        return entry.links(url, self.client)

    def fetch_abstract(self, url: str) -> str:
        """Return the plain-text abstract found at ``url``."""
        entry = self.lookup(self.registrable_domain(url))
        return entry.abstract(url, self.client)
