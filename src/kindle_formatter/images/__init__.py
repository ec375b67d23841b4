"""Image indexing, fetching and resolution."""

from .fetcher import RemoteImageFetcher
from .references import ReferenceIndex
from .resolver import ImageResolver, classify_tracking_pixel

__all__ = [
    "ImageResolver",
    "ReferenceIndex",
    "RemoteImageFetcher",
    "classify_tracking_pixel",
]
