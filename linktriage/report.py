#!/usr/bin/env python3
"""
report.py - Write a triage run to an Excel workbook

Sheets:
    Content Items          hard links found in .dat content items
    HTML Files             hard links in deployed content-collection pages
    Undeployed HTML Files  pages no course item links to
    x-id Links             links already using x-id references
    Discarded links        everything judged out of scope
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from linktriage.models import ContentItem, TriageResult

logger = logging.getLogger(__name__)

COURSE_LOCATION = "Course Location"
COLLECTION_PATH = "Content Collection Path"
ITEM_NAME = "Item Name"
LINK_TEXT = "Link/Alt Text"
LINK_ADDRESS = "Link Address"
XID = "x-id"

DEFAULT_SKIP_PATTERN = r"(DVD|VT)[0-9]{1,6}_"

NO_LINKS_DEPLOYED = "NO BAD LINKS FOUND, CONVERT TO BLANK PG?"
NO_LINKS_UNDEPLOYED = "NO BAD LINKS FOUND, CONSIDER DELETE"

HEADER_FONT = Font(name="Arial", size=11, underline="single")
HEADER_FILL = PatternFill(fill_type="solid", fgColor="CCFFCC")


@dataclass
class ReportSummary:
    path: Path
    content_rows: int = 0
    html_rows: int = 0
    undeployed_rows: int = 0
    xid_rows: int = 0
    discarded_rows: int = 0

    @property
    def hard_rows(self) -> int:
        return self.content_rows + self.html_rows + self.undeployed_rows


def report_name_for(archive: Union[str, Path]) -> str:
    """
    Report filename for an export archive.

    ExportFile_ABC101_20240101.zip -> triage_ABC101.xlsx
    """
    name = Path(archive).name
    index = name.rfind("_")
    base = name[:index] if index >= 0 else Path(name).stem
    return base.replace("ExportFile", "triage") + ".xlsx"


def _add_sheet(wb: Workbook, title: str, headers: Sequence[str]) -> Worksheet:
    ws = wb.create_sheet(title)
    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    return ws


def _clean(values: Sequence[object]) -> List[object]:
    """Row values with characters worksheets cannot hold removed"""
    return [ILLEGAL_CHARACTERS_RE.sub("", v) if isinstance(v, str) else v for v in values]


def _append(ws: Worksheet, values: Sequence[object]) -> None:
    ws.append(_clean(values))


def _autosize(ws: Worksheet) -> None:
    for index, column in enumerate(ws.iter_cols(values_only=True), start=1):
        width = max((len(str(v)) for v in column if v is not None), default=0)
        ws.column_dimensions[get_column_letter(index)].width = width + 2


class ReportWriter:
    """Accumulates rows for all five sheets, then saves once"""

    def __init__(self, skip_pattern: str = DEFAULT_SKIP_PATTERN):
        self.skip = re.compile(skip_pattern)
        self.wb = Workbook()
        self.wb.remove(self.wb.active)

        self.content = _add_sheet(self.wb, "Content Items",
                                  [ITEM_NAME, LINK_ADDRESS, XID, LINK_TEXT, COURSE_LOCATION])
        self.html = _add_sheet(self.wb, "HTML Files",
                               [ITEM_NAME, LINK_ADDRESS, XID, LINK_TEXT, COURSE_LOCATION, COLLECTION_PATH])
        self.undeployed = _add_sheet(self.wb, "Undeployed HTML Files",
                                     [COLLECTION_PATH, ITEM_NAME, LINK_TEXT, LINK_ADDRESS, XID])
        self.xid = _add_sheet(self.wb, "x-id Links",
                              [COURSE_LOCATION, COLLECTION_PATH, ITEM_NAME, LINK_TEXT, LINK_ADDRESS])
        self.discarded = _add_sheet(self.wb, "Discarded links",
                                    [COURSE_LOCATION, COLLECTION_PATH, ITEM_NAME, LINK_ADDRESS, LINK_TEXT])

    def _add_secondary_rows(self, item: ContentItem) -> None:
        for link in item.discarded_links:
            _append(self.discarded, [item.navigation_path, item.collection_path, item.title,
                                     link.url, link.text])
        for link in item.xid_links:
            _append(self.xid, [item.navigation_path, item.collection_path, item.title,
                               link.text, link.url])

    def add_content_items(self, items: Iterable[ContentItem]) -> None:
        for item in items:
            for link in item.hard_links:
                _append(self.content, [item.title, link.url, link.resolved_xid or "",
                                       link.text, item.navigation_path])
            self._add_secondary_rows(item)

    def add_html_items(self, items: Iterable[ContentItem]) -> None:
        for item in items:
            if self.skip.search(item.title):
                continue
            if not item.hard_links:
                _append(self.html, [item.title, NO_LINKS_DEPLOYED, "", "",
                                    item.navigation_path, item.collection_path])
            for link in item.hard_links:
                _append(self.html, [item.title, link.url, link.resolved_xid or "", link.text,
                                    item.navigation_path, item.collection_path])
            self._add_secondary_rows(item)

    def add_undeployed_items(self, items: Iterable[ContentItem]) -> None:
        for item in items:
            if self.skip.search(item.title):
                continue
            if not item.hard_links:
                _append(self.undeployed, [item.collection_path, item.title, NO_LINKS_UNDEPLOYED])
            for link in item.hard_links:
                _append(self.undeployed, [item.collection_path, item.title, link.text,
                                          link.url, link.resolved_xid or ""])
            self._add_secondary_rows(item)

    def save(self, path: Union[str, Path]) -> ReportSummary:
        path = Path(path)
        for ws in self.wb.worksheets:
            _autosize(ws)
        self.wb.save(path)

        return ReportSummary(
            path=path,
            content_rows=self.content.max_row - 1,
            html_rows=self.html.max_row - 1,
            undeployed_rows=self.undeployed.max_row - 1,
            xid_rows=self.xid.max_row - 1,
            discarded_rows=self.discarded.max_row - 1,
        )


def write_report(
    path: Union[str, Path],
    result: TriageResult,
    skip_pattern: Optional[str] = None,
) -> ReportSummary:
    """Write all five sheets for one run and save to path"""
    writer = ReportWriter(skip_pattern or DEFAULT_SKIP_PATTERN)
    writer.add_content_items(result.content_items)
    writer.add_html_items(result.html_items)
    writer.add_undeployed_items(result.undeployed_items)
    summary = writer.save(path)

    logger.info(f"Wrote {summary.hard_rows} hard-link rows to {summary.path}")
    return summary


def summary_lines(summary: ReportSummary) -> List[str]:
    return [
        f"Found & recorded {summary.hard_rows} probable bad links.",
        f"Found & discarded {summary.discarded_rows} links",
        f"Found & recorded {summary.xid_rows} x-id links",
    ]
