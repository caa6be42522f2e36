"""Platform resolvers."""

from .base import Resolver
from .googleads import GoogleAdsResolver
from .instagram import InstagramResolver
from .youtube import YouTubeResolver

__all__ = ["GoogleAdsResolver", "InstagramResolver", "Resolver", "YouTubeResolver"]
