"""Track source implementations."""

from .local import LocalCatalogSource
from .spotify import RemoteRecommendationSource

__all__ = ["LocalCatalogSource", "RemoteRecommendationSource"]
