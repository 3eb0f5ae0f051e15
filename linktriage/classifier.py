#!/usr/bin/env python3
"""
classifier.py - Find every link in an item's markup and bucket it

Buckets:
    hard       hand-authored link into the LMS that breaks on course copy
    discarded  out of scope (external sites, editor assets, blank targets)
    x-id       already uses the content collection's stable x-id reference

Rules are checked in a fixed order and the first match wins; each rule
below assumes every rule before it failed. Whether x-id resolution is
attempted is decided per rule, independently of the bucket: two discard
rules still ask for resolution.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, NamedTuple, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from linktriage.models import ContentItem, ContentType, Link, LinkCategory

if TYPE_CHECKING:
    from linktriage.xid_resolver import XidResolver

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

DEFAULT_BASE_URL = "https://bblearn.nau.edu/"

# JSP placeholder the editor writes in place of the LMS base URL
REQUEST_URL_STUB = "@X@EmbeddedFile.requestUrlStub@X@"
EMBEDDED_LOCATION_TOKEN = "@X@EmbeddedFile.location@X@"

# Outlook Web Access redirects; students cannot sign in to OWA
REDIRECT_GATEWAY = "iris.nau.edu/owa/redir.aspx"

# Publisher test-bank images, only ignored inside assessments
TEST_TOOL_SEGMENT = "ppg/"

XID_MARKER = "xid"
FILE_STORE_SEGMENT = "bbcswebdav"

# Absolute URLs mentioning these are treated as pointing at the LMS itself;
# the configured base URL's host is added by platform_markers()
PLATFORM_DOMAIN_MARKERS = ("bblearn", "vista")

# Images embedded by the TinyMCE/VTBE content editor
EDITOR_IMAGE_SEGMENT = "/images/ci/"

PLATFORM_SEGMENTS = ("courses", "webapp", "bbcswebdav", "webct", "vista")

# Areas whose links are managed by building blocks or system pages
EXCLUDED_PLATFORM_PATHS = (
    "/institution/",
    "execute/viewdocumentation?",
    "wvms-bb-bblearn",
    "bb-collaborate-bblearn",
    "webapps/vtbe-tinymce/tiny_mce",
    "webapps/login",
    "webapps/portal",
    "bbgs-nbc-content-integration-bblearn",
    "bb-selfpear-bblearn",
)

ABSOLUTE_PREFIXES = ("http://", "https://")
NON_NAVIGABLE_PREFIXES = ("https://", "http://", "javascript:", "mailto:", "#", "data:image/")
EXTERNAL_DOMAIN_MARKERS = (".com", ".net", ".edu", ".org", "//cdn.slidesharecdn.com/")


class LinkBuckets(NamedTuple):
    hard: List[Link]
    discarded: List[Link]
    xid: List[Link]


# ============================================================================
# Extraction
# ============================================================================

def _element_text(element) -> str:
    """Element text with runs of whitespace collapsed, like a rendered page"""
    return " ".join(element.get_text().split())


def collect_links(raw_text: str) -> List[Tuple[str, str]]:
    """
    Every anchor href and image src in the markup, keyed and sorted.

    Keys are "text: <anchor text>" or "alt: <image alt>". A repeated key
    keeps the last URL seen (images after anchors). The result is sorted
    by key, which fixes the scan order for everything downstream.
    """
    if not raw_text:
        return []

    soup = BeautifulSoup(raw_text, "lxml")
    links = {}

    for a in soup.find_all("a"):
        links["text: " + _element_text(a)] = a.get("href") or ""

    for img in soup.find_all("img"):
        links["alt: " + (img.get("alt") or "")] = img.get("src") or ""

    return sorted(links.items())


def normalize_url(url: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """
    Canonical form used by every rule.

    Substitutes the request-URL placeholder, lowercases, drops one leading
    %20 and removes every %0d.
    """
    url = url.replace(REQUEST_URL_STUB, base_url).lower()
    if url.startswith("%20"):
        url = url[len("%20"):]
    return url.replace("%0d", "")


# ============================================================================
# Rule cascade
# ============================================================================

def _is_absolute(url: str) -> bool:
    return url.startswith(ABSOLUTE_PREFIXES) or url.startswith("www")


def platform_markers(base_url: str = DEFAULT_BASE_URL) -> Tuple[str, ...]:
    """Domain markers for the LMS: the defaults plus the host of base_url"""
    host = (urlparse(base_url).hostname or "").lower()
    if host and not any(m in host for m in PLATFORM_DOMAIN_MARKERS):
        return PLATFORM_DOMAIN_MARKERS + (host,)
    return PLATFORM_DOMAIN_MARKERS


def classify_url(
    url: str,
    content_type: ContentType = ContentType.UNCLASSIFIED,
    markers: Tuple[str, ...] = PLATFORM_DOMAIN_MARKERS,
) -> Tuple[LinkCategory, bool]:
    """
    Bucket a normalized URL.

    markers are the substrings that identify an absolute URL as the LMS
    itself; see platform_markers().

    Returns:
        (category, resolve) where resolve says whether x-id resolution
        should be attempted for this link
    """
    if REDIRECT_GATEWAY in url:
        return LinkCategory.HARD, True

    if ((TEST_TOOL_SEGMENT in url and content_type is ContentType.ASSESSMENT)
            or url == "about:blank"
            # compared lowercased like url; the mixed-case token never matches
            # and would leave these links to the relative-link rule as hard
            or EMBEDDED_LOCATION_TOKEN.lower() in url):
        return LinkCategory.DISCARDED, True

    if XID_MARKER in url and FILE_STORE_SEGMENT in url:
        return LinkCategory.XID, False

    if _is_absolute(url) and not any(m in url for m in markers):
        return LinkCategory.DISCARDED, False

    if EDITOR_IMAGE_SEGMENT in url:
        return LinkCategory.DISCARDED, False

    if (any(s in url for s in PLATFORM_SEGMENTS)
            and not any(p in url for p in EXCLUDED_PLATFORM_PATHS)):
        return LinkCategory.HARD, True

    # Relative links: not external, not a script/mail/anchor/inline image
    if (not url.startswith(NON_NAVIGABLE_PREFIXES)
            and "webapp" not in url
            and not any(m in url for m in EXTERNAL_DOMAIN_MARKERS)):
        return LinkCategory.HARD, True

    return LinkCategory.DISCARDED, False


def classify(
    raw_text: str,
    item: ContentItem,
    resolver: Optional["XidResolver"] = None,
    base_url: str = DEFAULT_BASE_URL,
) -> LinkBuckets:
    """
    Extract and bucket every link in raw_text, appending them to item.

    When a resolver is given, links whose rule asks for it get their
    resolved_xid filled in.
    """
    buckets = LinkBuckets([], [], [])
    markers = platform_markers(base_url)

    for key, raw_url in collect_links(raw_text):
        url = raw_url.strip()
        if not url:
            continue

        url = normalize_url(url, base_url)
        category, resolve = classify_url(url, item.content_type, markers)

        link = Link(url=url, text=key.strip(), category=category, resolve_requested=resolve)
        if resolve and resolver is not None:
            link.resolved_xid = resolver.resolve(url)

        logger.debug(f"[{category.value}] {url} ({item.title})")
        item.add_link(link)
        if category is LinkCategory.HARD:
            buckets.hard.append(link)
        elif category is LinkCategory.XID:
            buckets.xid.append(link)
        else:
            buckets.discarded.append(link)

    return buckets


def sort_items(items: Iterable[ContentItem]) -> List[ContentItem]:
    """Most hard links first; ties keep their previous order"""
    return sorted(items, key=lambda i: i.hard_link_count, reverse=True)
