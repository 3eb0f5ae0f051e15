#!/usr/bin/env python3
"""
manifest.py - Course navigation tree and breadcrumb resolution

The export's imsmanifest.xml holds the course menu as nested <item>
elements inside an <organization>. Each item may point at a content
descriptor through its `identifierref` attribute (the descriptor's
filename stem, e.g. res00012).

Nodes are kept in a flat arena and refer to their parent by index, so the
breadcrumb walk only moves up through integers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union
from xml.etree import ElementTree as ET

# SECURITY: Use defusedxml to protect against XXE attacks
from defusedxml import ElementTree as DefusedET

from linktriage.models import ManifestNode, NOT_DEPLOYED

logger = logging.getLogger(__name__)

ITEM_KIND = "item"
TOP_MARKER = "--TOP--"
SEPARATOR = "\\"


def local_name(tag: str) -> str:
    """Tag name without its {namespace} prefix"""
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag


class ManifestTree:
    """Arena of ManifestNode objects in document order"""

    def __init__(self, nodes: Optional[List[ManifestNode]] = None):
        self.nodes: List[ManifestNode] = []
        for node in nodes or []:
            self.add(node)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ManifestNode]:
        return iter(self.nodes)

    def add(self, node: ManifestNode) -> int:
        """Append a node, registering it with its parent; returns its index"""
        index = len(self.nodes)
        self.nodes.append(node)
        if node.parent is not None:
            self.nodes[node.parent].children.append(index)
        return index

    def find(self, content_item_id: str) -> Optional[int]:
        """Index of the first node referencing content_item_id (case-insensitive)"""
        target = content_item_id.lower()
        for index, node in enumerate(self.nodes):
            if node.content_item_id is not None and node.content_item_id.lower() == target:
                return index
        return None

    def path_to(self, index: int) -> str:
        r"""
        Breadcrumb for the node at index.

        Walks up through item-typed ancestors only, skipping the --TOP--
        root marker. The node's own title is not part of its path. The
        result always ends with a separator, e.g. "\Course Content\Week 1\".
        """
        segments: List[str] = []
        parent = self.nodes[index].parent
        while parent is not None and self.nodes[parent].kind == ITEM_KIND:
            title = self.nodes[parent].title
            if title != TOP_MARKER:
                segments.insert(0, title)
            parent = self.nodes[parent].parent

        return "".join(SEPARATOR + s for s in segments) + SEPARATOR


def _first_title(elem: ET.Element) -> str:
    """Text of the first <title> descendant, in document order"""
    for child in elem.iter():
        if child is not elem and local_name(child.tag) == "title":
            return "".join(child.itertext())
    return ""


def build_tree(root: ET.Element) -> ManifestTree:
    """
    Build a ManifestTree from a parsed manifest.

    Every <item> becomes a node. The element directly containing a
    top-level item (normally <organization>) becomes a parentless node of
    its own kind, which is where breadcrumb walks stop.
    """
    tree = ManifestTree()

    def walk(elem: ET.Element, elem_index: Optional[int]) -> None:
        for child in elem:
            if local_name(child.tag) == ITEM_KIND:
                if elem_index is None:
                    elem_index = tree.add(ManifestNode(
                        title=_first_title(elem),
                        kind=local_name(elem.tag),
                    ))
                child_index = tree.add(ManifestNode(
                    title=_first_title(child),
                    content_item_id=child.get("identifierref"),
                    kind=ITEM_KIND,
                    parent=elem_index,
                ))
                walk(child, child_index)
            else:
                walk(child, None)

    walk(root, None)
    return tree


def parse_manifest(path: Union[str, Path]) -> ManifestTree:
    """Parse imsmanifest.xml into a ManifestTree"""
    path = Path(path)
    root = DefusedET.parse(str(path)).getroot()
    tree = build_tree(root)
    logger.debug(f"Loaded {len(tree)} navigation nodes from {path.name}")
    return tree


def locate(tree: ManifestTree, content_item_id: Optional[str]) -> Tuple[str, Optional[ManifestNode]]:
    """
    Breadcrumb plus the matching node (None when there is no match).

    No content_item_id means no descriptor backs the item: NOT_DEPLOYED.
    A descriptor the menu never references yields an empty path.
    """
    if content_item_id is None:
        return NOT_DEPLOYED, None

    index = tree.find(content_item_id)
    if index is None:
        return "", None

    return tree.path_to(index), tree.nodes[index]


def resolve_path(tree: ManifestTree, content_item_id: Optional[str]) -> str:
    """Human-readable breadcrumb from the course root to the item"""
    path, _ = locate(tree, content_item_id)
    return path
