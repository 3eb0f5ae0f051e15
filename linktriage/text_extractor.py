#!/usr/bin/env python3
"""
text_extractor.py - Pull title, content type and markup out of a descriptor

Two descriptor kinds exist in a course export:

- Content-item XML (.dat): title, content type, assessment sub-type and
  the embedded HTML payload are read with a streaming SAX handler.
- Exported HTML pages (.htm/.html) from the content collection: the file
  text is the payload and the title comes from the filename.

Announcements and discussion forums are never scanned for links, so their
payload is always returned empty.
"""

from __future__ import annotations

import logging
import re
import xml.sax
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import defusedxml.sax
from defusedxml import DefusedXmlException

from linktriage.errors import descriptor_parse_error
from linktriage.models import ContentType

logger = logging.getLogger(__name__)

XML_SUFFIXES = {".dat"}
HTML_SUFFIXES = {".htm", ".html"}

XID_NAME_MARKER = "__xid"
LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class Extraction:
    """Normalized output of the extractor"""
    title: str
    content_type: ContentType
    assessment_subtype: str
    raw_text: str

    @property
    def display_title(self) -> str:
        """Title as reported: assessments are prefixed with their sub-type"""
        if self.content_type is ContentType.ASSESSMENT:
            return f"{self.assessment_subtype}: {self.title}"
        return self.title


class DescriptorHandler(xml.sax.ContentHandler):
    """
    SAX handler for content-item descriptors.

    Text capture starts at a <TEXT> element, or at any element carrying an
    attribute whose value contains "TEXT" (e.g. FORMATTED_TEXT_BLOCK), and
    stops at the next end tag of any element.
    """

    def __init__(self):
        super().__init__()
        self.is_announcement = False
        self.is_discussion = False
        self.is_assessment = False
        self.in_text = False
        self.reading_assess_type = False
        self.title = ""
        self.assess_type = ""
        self._text: List[str] = []

    def startElement(self, name, attrs):
        tag = name.lower()

        if tag == "announcement":
            self.is_announcement = True
        if tag == "forum":
            self.is_discussion = True
        if tag == "assessment":
            self.is_assessment = True
            if "title" in attrs.getNames():
                self.title = attrs.getValue("title")

        if self.is_assessment and tag == "bbmd_assessmenttype":
            self.reading_assess_type = True
            self.assess_type = ""

        if tag == "title" and "value" in attrs.getNames():
            self.title = attrs.getValue("value")

        if tag == "text":
            self.in_text = True

        for attr_name in attrs.getNames():
            if "TEXT" in attrs.getValue(attr_name):
                self.in_text = True

    def endElement(self, name):
        self.in_text = False
        self.reading_assess_type = False

    def characters(self, content):
        if self.in_text:
            self._text.append(content)
        if self.reading_assess_type:
            self.assess_type += content

    @property
    def content_type(self) -> ContentType:
        if self.is_announcement:
            return ContentType.ANNOUNCEMENT
        if self.is_discussion:
            return ContentType.DISCUSSION_FORUM
        if self.is_assessment:
            return ContentType.ASSESSMENT
        return ContentType.UNCLASSIFIED

    @property
    def text(self) -> str:
        if self.is_announcement or self.is_discussion:
            return ""
        return "".join(self._text)


class DescriptorReader:
    """
    Reusable extractor.

    Holds one SAX parser for the whole run instead of building a new one
    per descriptor. Not thread-safe; use one reader per run.
    """

    def __init__(self):
        self._parser = defusedxml.sax.make_parser()

    def extract(self, path: Union[str, Path]) -> Extraction:
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix in XML_SUFFIXES:
            return self.extract_xml(path)
        if suffix in HTML_SUFFIXES:
            return extract_html(path)
        raise descriptor_parse_error(path, ValueError(f"unsupported descriptor type '{suffix}'"))

    def extract_xml(self, path: Union[str, Path]) -> Extraction:
        path = Path(path)
        handler = DescriptorHandler()
        self._parser.setContentHandler(handler)
        try:
            self._parser.parse(str(path))
        except (xml.sax.SAXException, DefusedXmlException, OSError) as e:
            raise descriptor_parse_error(path, e) from e

        logger.debug(f"Parsed descriptor {path.name}: {handler.content_type.name}")
        return Extraction(
            title=handler.title,
            content_type=handler.content_type,
            assessment_subtype=handler.assess_type.strip(),
            raw_text=handler.text,
        )


def html_title(filename: str) -> str:
    """Filename with any trailing __xid... segment removed"""
    index = filename.rfind(XID_NAME_MARKER)
    if index > -1:
        return filename[:index]
    return filename


def read_html_text(path: Path) -> str:
    """File text with line breaks dropped and no other normalization"""
    text = path.read_bytes().decode("utf-8", errors="replace")
    return LINE_BREAK.sub("", text)


def extract_html(path: Union[str, Path]) -> Extraction:
    path = Path(path)
    try:
        text = read_html_text(path)
    except OSError as e:
        raise descriptor_parse_error(path, e) from e

    return Extraction(
        title=html_title(path.name),
        content_type=ContentType.UNCLASSIFIED,
        assessment_subtype="",
        raw_text=text,
    )


def extract(path: Union[str, Path], reader: Optional[DescriptorReader] = None) -> Extraction:
    """
    Extract (title, content type, assessment sub-type, markup) from a descriptor.

    Raises:
        DescriptorParseError: markup cannot be parsed at all, or the file is unreadable
    """
    if reader is None:
        reader = DescriptorReader()
    return reader.extract(path)
