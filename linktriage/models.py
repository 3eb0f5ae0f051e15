#!/usr/bin/env python3
"""
models.py - Data model for a course-export link triage run

A run produces one ContentItem per content descriptor (.dat) or exported
HTML page. Each item holds its links split into three disjoint buckets.
Nothing here is shared across runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


# Navigation path for items that no descriptor backs
NOT_DEPLOYED = "NOT DEPLOYED?"

# Sentinel values for x-id resolution failures
NOT_FOUND_IN_COLLECTION = "NOT FOUND IN COLLECTION"
NON_ASCII_IN_LINK = "NON-ASCII CHARS IN LINK"


class ContentType(Enum):
    """Content type of a descriptor; values are the report labels"""
    ANNOUNCEMENT = "Announcements"
    DISCUSSION_FORUM = "Discussion Forums"
    ASSESSMENT = "Tests, Surveys & Pools"
    UNCLASSIFIED = ""


class LinkCategory(Enum):
    HARD = "hard"
    DISCARDED = "discarded"
    XID = "x-id"


@dataclass
class Link:
    """A single anchor href or image src found in an item's markup"""
    url: str
    text: str
    category: LinkCategory
    resolve_requested: bool = False
    resolved_xid: Optional[str] = None


@dataclass
class ContentItem:
    """One course content unit and the links found in it"""
    item_id: Optional[str]
    title: str
    content_type: ContentType = ContentType.UNCLASSIFIED
    navigation_path: str = ""
    collection_path: str = ""
    source_path: Optional[Path] = None
    source_kind: str = "xml"
    hard_links: List[Link] = field(default_factory=list)
    discarded_links: List[Link] = field(default_factory=list)
    xid_links: List[Link] = field(default_factory=list)

    @property
    def hard_link_count(self) -> int:
        return len(self.hard_links)

    @property
    def is_deployed(self) -> bool:
        return self.item_id is not None

    def add_link(self, link: Link) -> None:
        if link.category is LinkCategory.HARD:
            self.hard_links.append(link)
        elif link.category is LinkCategory.XID:
            self.xid_links.append(link)
        else:
            self.discarded_links.append(link)

    @property
    def all_links(self) -> List[Link]:
        return self.hard_links + self.discarded_links + self.xid_links


@dataclass
class ManifestNode:
    """
    One navigation-tree entry.

    Nodes live in a ManifestTree arena; `parent` and `children` are indices
    into that arena rather than object references.
    """
    title: str
    content_item_id: Optional[str] = None
    kind: str = "item"
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)


@dataclass
class CollectionFile:
    """
    Content-collection metadata file (<name>.xml beside the exported file).

    `identifier` holds the raw `numericId#path` value once read.
    """
    path: Path
    identifier: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class TriageResult:
    """Everything one run hands to the reporting collaborator"""
    export_name: str
    content_items: List[ContentItem] = field(default_factory=list)
    html_items: List[ContentItem] = field(default_factory=list)
    undeployed_items: List[ContentItem] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def all_items(self) -> List[ContentItem]:
        return self.content_items + self.html_items + self.undeployed_items

    def count(self, category: LinkCategory) -> int:
        total = 0
        for item in self.all_items:
            if category is LinkCategory.HARD:
                total += len(item.hard_links)
            elif category is LinkCategory.XID:
                total += len(item.xid_links)
            else:
                total += len(item.discarded_links)
        return total
