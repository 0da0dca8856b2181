"""Service layer."""

from bibreview.services.annotation_policy import AnnotationPolicy
from bibreview.services.enrichment_service import EnrichmentService
from bibreview.services.field_store import FieldStore
from bibreview.services.review_navigator import NavigationResult, ReviewNavigator
from bibreview.services.site_fetchers import SITES, PageClient, SiteEntry, SiteFetcherRegistry

__all__ = [
    "AnnotationPolicy",
    "EnrichmentService",
    "FieldStore",
    "NavigationResult",
    "PageClient",
    "ReviewNavigator",
    "SITES",
    "SiteEntry",
    "SiteFetcherRegistry",
]
