#!/usr/bin/env python3
"""
collection.py - Locate the pieces of an extracted course export

An extracted export looks like:

    imsmanifest.xml          course navigation tree
    res00001.dat ...         content-item descriptors
    csfiles/home_dir/...     content collection: exported files, each with
                             a <filename>.xml metadata file beside it

Also maps exported HTML pages back to the .dat descriptor that links them
into the course (a resource/x-bb-file item whose LINKNAME is the page's
filename).
"""

from __future__ import annotations

import logging
import os
import xml.sax
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import defusedxml.sax
from defusedxml import DefusedXmlException

from linktriage.errors import missing_manifest_error
from linktriage.models import CollectionFile

logger = logging.getLogger(__name__)

MANIFEST_NAME = "imsmanifest.xml"
COLLECTION_DIR = Path("csfiles") / "home_dir"
FILE_HANDLER = "resource/x-bb-file"


def file_extension(name: str) -> str:
    """
    Suffix from the last dot, e.g. ".dat".

    A dot at position 0 or 1 does not start an extension, so ".xml" and
    "a.xml" have none.
    """
    index = name.rfind(".")
    if index > 1:
        return name[index:]
    return ""


def files_with_extension(root: Path, ext: str) -> List[Path]:
    """Every file below root with exactly this extension, sorted by path"""
    found = []
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            if file_extension(name) == ext:
                found.append(Path(dirpath) / name)
    return sorted(found)


@dataclass
class CourseExport:
    """File inventory of one extracted export"""
    root: Path
    manifest_path: Path
    collection_root: Path
    dat_files: List[Path] = field(default_factory=list)
    xml_files: List[Path] = field(default_factory=list)
    html_files: List[Path] = field(default_factory=list)

    @classmethod
    def discover(cls, root: Union[str, Path]) -> "CourseExport":
        """
        Inventory an extracted export directory.

        Raises:
            ExportStructureError: imsmanifest.xml is missing
        """
        root = Path(root)
        manifest_path = root / MANIFEST_NAME
        if not manifest_path.is_file():
            raise missing_manifest_error(root)

        export = cls(
            root=root,
            manifest_path=manifest_path,
            collection_root=root / COLLECTION_DIR,
            dat_files=files_with_extension(root, ".dat"),
            xml_files=files_with_extension(root, ".xml"),
            html_files=files_with_extension(root, ".htm") + files_with_extension(root, ".html"),
        )
        logger.debug(
            f"Found {len(export.dat_files)} descriptors, {len(export.xml_files)} xml files, "
            f"{len(export.html_files)} html files in {root}"
        )
        return export

    def collection_files(self) -> List[CollectionFile]:
        return [CollectionFile(path=p) for p in self.xml_files]

    def collection_path(self, path: Path) -> str:
        """Location of path inside the content collection, e.g. /unitA/page.html"""
        full = str(path.absolute())
        return full.replace(str(self.collection_root.absolute()), "")


class LinkNameHandler(xml.sax.ContentHandler):
    """Reads the LINKNAME of a descriptor that wraps a collection file"""

    def __init__(self):
        super().__init__()
        self.is_file = False
        self.link_name: Optional[str] = None

    def startElement(self, name, attrs):
        tag = name.lower()
        if tag == "contenthandler" and attrs.get("value") == FILE_HANDLER:
            self.is_file = True
        if self.is_file and tag == "linkname" and "value" in attrs.getNames():
            self.link_name = attrs.getValue("value")


def build_link_index(dat_files: Iterable[Path]) -> Dict[str, Path]:
    """
    Map exported filename -> descriptor that links it into the course.

    The first descriptor naming a file wins. Unparseable descriptors are
    logged and skipped.
    """
    parser = defusedxml.sax.make_parser()
    index: Dict[str, Path] = {}

    for dat in dat_files:
        handler = LinkNameHandler()
        parser.setContentHandler(handler)
        try:
            parser.parse(str(dat))
        except (xml.sax.SAXException, DefusedXmlException, OSError) as e:
            logger.warning(f"Skipping unreadable descriptor {dat.name}: {e}")
            continue

        if handler.link_name and handler.link_name not in index:
            index[handler.link_name] = dat

    return index
