"""Resolve social-media post links into directly playable video URLs."""

from .canonical import clean_url
from .config import ResolverConfig, load_config
from .dispatcher import Dispatcher, build_dispatcher
from .errors import MissingCredential, NotFound, ProcessFailure, ResolverError, TransportError, UnsupportedPlatform
from .logging import configure_logging, jlog, logging_context, reslog, set_global_context
from .models import (
    ErrorKind,
    Failed,
    GoogleAdsDetails,
    InstagramDetails,
    NoResult,
    Platform,
    Resolution,
    Resolved,
    VideoReference,
    YouTubeDetails,
)
from .playwright import CHROMIUM_LAUNCH_ARGS, PlaywrightBrowserFactory, cleanup_playwright
from .resolvers import GoogleAdsResolver, InstagramResolver, Resolver, YouTubeResolver
from .versioning import get_resolver_version

__all__ = [
    "CHROMIUM_LAUNCH_ARGS",
    "Dispatcher",
    "ErrorKind",
    "Failed",
    "GoogleAdsDetails",
    "GoogleAdsResolver",
    "InstagramDetails",
    "InstagramResolver",
    "MissingCredential",
    "NoResult",
    "NotFound",
    "Platform",
    "PlaywrightBrowserFactory",
    "ProcessFailure",
    "Resolution",
    "Resolved",
    "Resolver",
    "ResolverConfig",
    "ResolverError",
    "TransportError",
    "UnsupportedPlatform",
    "VideoReference",
    "YouTubeDetails",
    "YouTubeResolver",
    "build_dispatcher",
    "clean_url",
    "cleanup_playwright",
    "configure_logging",
    "get_resolver_version",
    "jlog",
    "load_config",
    "logging_context",
    "reslog",
    "set_global_context",
]
