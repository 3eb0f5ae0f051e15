#!/usr/bin/env python3
"""
processor.py - One triage run over one course export

Builds a ContentItem for every .dat descriptor and every exported HTML
page, classifies its links, resolves x-ids where asked, and places it in
the course navigation tree.

Items are independent of each other; iter_items() yields them one at a
time, so a caller can stop between items without leaving a partial one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, Optional, Union
from xml.etree.ElementTree import ParseError

from defusedxml import DefusedXmlException

from linktriage.classifier import DEFAULT_BASE_URL, classify, sort_items
from linktriage.collection import CourseExport, build_link_index
from linktriage.errors import DescriptorParseError, ExportStructureError
from linktriage.ingest import unpacked_export
from linktriage.manifest import ManifestTree, locate, parse_manifest
from linktriage.models import ContentItem, ContentType, TriageResult
from linktriage.text_extractor import DescriptorReader
from linktriage.xid_resolver import XidResolver

logger = logging.getLogger(__name__)


class CourseProcessor:
    """Classifies every item of one extracted export"""

    def __init__(self, export: CourseExport, base_url: str = DEFAULT_BASE_URL):
        self.export = export
        self.base_url = base_url
        self.reader = DescriptorReader()
        self.tree: ManifestTree = self._load_tree()
        self.resolver = XidResolver(export.collection_files(), base_url)
        self.link_index: Dict[str, Path] = build_link_index(export.dat_files)
        self.skipped: Dict[str, str] = {}

    def _load_tree(self) -> ManifestTree:
        try:
            return parse_manifest(self.export.manifest_path)
        except (ParseError, DefusedXmlException) as e:
            raise ExportStructureError(
                message="Could not parse the course navigation manifest",
                context={"manifest": str(self.export.manifest_path)},
                cause=e,
            ) from e

    # ------------------------------------------------------------------
    # Item construction
    # ------------------------------------------------------------------

    def build_xml_item(self, dat: Path) -> ContentItem:
        extraction = self.reader.extract_xml(dat)

        item = ContentItem(
            item_id=dat.stem,
            title=extraction.display_title,
            content_type=extraction.content_type,
            source_path=dat,
            source_kind="xml",
        )

        # Announcements, forums and assessments live outside the menu;
        # their content type stands in for a location
        if item.content_type is not ContentType.UNCLASSIFIED:
            item.navigation_path = item.content_type.value
        else:
            item.navigation_path, _ = locate(self.tree, item.item_id)

        classify(extraction.raw_text, item, self.resolver, self.base_url)
        return item

    def build_html_item(self, html: Path) -> ContentItem:
        extraction = self.reader.extract(html)
        dat = self.link_index.get(html.name)

        item = ContentItem(
            item_id=dat.stem if dat is not None else None,
            title=extraction.title,
            collection_path=self.export.collection_path(html),
            source_path=html,
            source_kind="html",
        )
        classify(extraction.raw_text, item, self.resolver, self.base_url)

        item.navigation_path, node = locate(self.tree, item.item_id)
        if node is not None:
            item.title = node.title
        return item

    def _safe_build(self, path: Path, builder) -> Optional[ContentItem]:
        try:
            return builder(path)
        except DescriptorParseError as e:
            logger.warning(f"Skipping {path.name}: {e.cause or e.message}")
            self.skipped[str(path)] = e.message
            return None

    def iter_items(self) -> Iterator[ContentItem]:
        """Descriptor items first, then HTML pages, in file order"""
        for dat in self.export.dat_files:
            item = self._safe_build(dat, self.build_xml_item)
            if item is not None:
                yield item

        for html in self.export.html_files:
            item = self._safe_build(html, self.build_html_item)
            if item is not None:
                yield item

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def run(self) -> TriageResult:
        logger.info("Searching content items and HTML files for hard links...")
        result = TriageResult(export_name=self.export.root.name)

        content, html = [], []
        for item in self.iter_items():
            if item.source_kind == "xml":
                content.append(item)
            else:
                html.append(item)

        result.content_items = sort_items(content)
        for item in sort_items(html):
            if item.is_deployed:
                result.html_items.append(item)
            else:
                result.undeployed_items.append(item)

        result.skipped = dict(self.skipped)
        logger.info(
            f"Classified {len(result.all_items)} items "
            f"({len(result.undeployed_items)} undeployed, {len(result.skipped)} skipped)"
        )
        return result


def triage_directory(export_dir: Union[str, Path], base_url: str = DEFAULT_BASE_URL) -> TriageResult:
    """Run on an already extracted and sanitized export"""
    logger.info("Analyzing course structure & building model...")
    export = CourseExport.discover(export_dir)
    return CourseProcessor(export, base_url).run()


def triage_archive(
    archive: Union[str, Path],
    base_url: str = DEFAULT_BASE_URL,
    keep_temp: bool = False,
) -> TriageResult:
    """Extract, sanitize and triage one export archive"""
    archive = Path(archive)
    logger.info(f"Extracting {archive.name}...")
    with unpacked_export(archive, keep=keep_temp) as workdir:
        result = triage_directory(workdir, base_url)
    result.export_name = archive.name
    return result
