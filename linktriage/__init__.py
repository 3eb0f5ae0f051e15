"""
linktriage - Hard-link triage for LMS course exports

Walks every content item of a course export, extracts each hyperlink and
image reference, and sorts them into hard links (fragile, break on course
copy), discarded links (out of scope) and x-id links (already stable).
Hard links are matched back to their stable x-id where possible.
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Make key utilities easily importable
from .errors import TriageError, ConfigurationError, DescriptorParseError
from .models import ContentItem, ContentType, Link, LinkCategory, NOT_DEPLOYED
from .classifier import classify, classify_url, normalize_url
from .xid_resolver import XidResolver, levenshtein
from .manifest import ManifestTree, resolve_path

__all__ = [
    "__version__",
    "TriageError",
    "ConfigurationError",
    "DescriptorParseError",
    "ContentItem",
    "ContentType",
    "Link",
    "LinkCategory",
    "NOT_DEPLOYED",
    "classify",
    "classify_url",
    "normalize_url",
    "XidResolver",
    "levenshtein",
    "ManifestTree",
    "resolve_path",
]
