#!/usr/bin/env python3
"""
xid_resolver.py - Match a hard link to its stable x-id reference

Every file in the exported content collection has a metadata file next to
it named <filename>.xml whose <identifier> is "numericId#/declared/path".
A link is matched to candidates by filename; when several files share the
name, the one whose declared path is closest to the link (by edit
distance) wins.

Resolution never raises. Failures come back as sentinel strings.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

# SECURITY: Use defusedxml to protect against XXE attacks
from defusedxml import ElementTree as DefusedET
from defusedxml import DefusedXmlException
from xml.etree.ElementTree import ParseError

from linktriage.classifier import DEFAULT_BASE_URL
from linktriage.manifest import local_name
from linktriage.models import CollectionFile, NON_ASCII_IN_LINK, NOT_FOUND_IN_COLLECTION

logger = logging.getLogger(__name__)

# Course-section prefix of declared paths, e.g.
# /courses/2024-NAU01-ABC-101-SEC01-12345.NAU-PSSIS/
COURSE_SECTION_PATTERN = re.compile(
    r"/courses/[0-9]{4}-NAU[0-9]{2}-[A-Z]{2,4}-"
    r"[0-9]{3}[A-Z]{0,2}-SEC[0-9A-Z]{1,4}-[0-9]{2,5}.NAU-PSSIS/"
)

XID_PATH = "bbcswebdav/xid-"


def xid_prefix(base_url: str = DEFAULT_BASE_URL) -> str:
    return base_url + XID_PATH


def levenshtein(s0: str, s1: str) -> int:
    """
    Character-level edit distance, case-sensitive.

    Two rolling rows of len(s0) + 1 cells; one pass per character of s1.
    """
    len0 = len(s0) + 1
    len1 = len(s1) + 1

    cost = list(range(len0))
    newcost = [0] * len0

    for j in range(1, len1):
        newcost[0] = j
        for i in range(1, len0):
            match = 0 if s0[i - 1] == s1[j - 1] else 1
            cost_replace = cost[i - 1] + match
            cost_insert = cost[i] + 1
            cost_delete = newcost[i - 1] + 1
            newcost[i] = min(cost_insert, cost_delete, cost_replace)
        cost, newcost = newcost, cost

    return cost[len0 - 1]


def is_ascii(text: str) -> bool:
    return all(ord(c) <= 0x7F for c in text)


def link_filename(url: str) -> str:
    """Last non-empty /-separated segment of url"""
    parts = url.split("/")
    while parts and not parts[-1]:
        parts.pop()
    return parts[-1] if parts else ""


def read_identifier(collection_file: CollectionFile) -> str:
    """
    The file's <identifier> text, read once and cached on the object.

    Unreadable metadata yields an empty identifier.
    """
    if collection_file.identifier is not None:
        return collection_file.identifier

    identifier = ""
    try:
        root = DefusedET.parse(str(collection_file.path)).getroot()
        for elem in root.iter():
            if local_name(elem.tag) == "identifier":
                identifier = "".join(elem.itertext())
                break
    except (ParseError, DefusedXmlException, OSError) as e:
        logger.warning(f"Could not read identifier from {collection_file.name}: {e}")

    collection_file.identifier = identifier
    return identifier


class XidResolver:
    """Resolves links against one export's content-collection metadata"""

    def __init__(self, collection_files: Iterable[CollectionFile], base_url: str = DEFAULT_BASE_URL):
        self.prefix = xid_prefix(base_url)
        self._by_name: Dict[str, List[CollectionFile]] = defaultdict(list)
        for cf in collection_files:
            self._by_name[cf.name].append(cf)

    def candidates(self, url: str) -> List[CollectionFile]:
        return list(self._by_name.get(link_filename(url) + ".xml", []))

    def resolve(self, url: str) -> str:
        candidates = self.candidates(url)

        if not candidates:
            if is_ascii(url):
                return NOT_FOUND_IN_COLLECTION
            return NON_ASCII_IN_LINK

        if len(candidates) == 1:
            return self.prefix + read_identifier(candidates[0]).split("#")[0]

        return self.prefix + self._closest(url, candidates)

    def _closest(self, url: str, candidates: List[CollectionFile]) -> str:
        """Id of the candidate whose declared path is nearest to url; first wins ties"""
        target = url.replace(" ", "%20")
        best_id: Optional[str] = None
        best_distance = 0

        for cf in candidates:
            ident, _, declared_path = read_identifier(cf).partition("#")
            declared_path = COURSE_SECTION_PATTERN.sub("", declared_path)
            distance = levenshtein(target, declared_path)
            if best_id is None or distance < best_distance:
                best_id = ident
                best_distance = distance

        logger.debug(f"Picked x-id {best_id} for {url} from {len(candidates)} candidates")
        return best_id or ""
