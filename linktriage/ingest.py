#!/usr/bin/env python3
"""
ingest.py - Unpack a course export archive for scanning

- extract_archive(): unzip with member-name checks
- sanitize_xid_filenames(): strip the __xid-NNNNNN_N suffix the LMS adds
  to exported collection filenames, so names match what links point at
- unpacked_export(): temp-dir context manager doing both, then cleanup
"""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
import zipfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Union

from linktriage.errors import ArchiveError, unsafe_member_error

logger = logging.getLogger(__name__)

XID_SUFFIX_PATTERN = re.compile(r"__xid-[0-9]{6,8}_[0-9]")


def is_safe_member_name(member: str) -> bool:
    """
    Validate zip member name for path traversal attempts.

    Blocks:
        - Absolute paths (/, C:, etc.)
        - Parent directory references (..)
        - Dangerous characters (\\0, <, >, |, ?, *)
    """
    if not member:
        return False

    if member.startswith('/') or member.startswith('\\'):
        return False

    # Windows drive letters
    if len(member) >= 2 and member[1] == ':':
        return False

    parts = member.replace('\\', '/').split('/')
    if '..' in parts:
        return False

    dangerous_chars = ['\0', '<', '>', '|', '?', '*']
    if any(char in member for char in dangerous_chars):
        return False

    return True


def extract_archive(archive: Union[str, Path], dest: Union[str, Path]) -> Path:
    """
    Extract every member of a course export into dest.

    Raises:
        ArchiveError: archive is missing, corrupt, or has an unsafe member
    """
    archive = Path(archive)
    dest = Path(dest)
    dest.mkdir(parents=True, exist_ok=True)

    try:
        with zipfile.ZipFile(archive) as zf:
            for member in zf.namelist():
                if not is_safe_member_name(member):
                    raise unsafe_member_error(archive, member)
            zf.extractall(dest)
    except zipfile.BadZipFile as e:
        raise ArchiveError(
            message=f"Not a valid zip archive: {archive.name}",
            suggestion="Download the course export again; the file may be truncated",
            context={"archive": str(archive)},
            cause=e,
        ) from e
    except OSError as e:
        raise ArchiveError(
            message=f"Could not extract {archive.name}",
            context={"archive": str(archive), "dest": str(dest)},
            cause=e,
        ) from e

    logger.debug(f"Extracted {archive.name} to {dest}")
    return dest


def sanitize_xid_filenames(root: Union[str, Path]) -> int:
    """
    Remove x-id suffixes from every file and directory name below root.

    Directories are renamed before their contents are visited. Returns
    the number of entries renamed.
    """
    root = Path(root)
    renamed = 0

    for entry in sorted(root.iterdir()):
        new_name = XID_SUFFIX_PATTERN.sub("", entry.name)
        target = entry
        if new_name != entry.name:
            candidate = entry.with_name(new_name)
            if candidate.exists():
                logger.warning(f"Not renaming {entry.name}: {new_name} already exists")
            else:
                entry.rename(candidate)
                target = candidate
                renamed += 1

        if target.is_dir():
            renamed += sanitize_xid_filenames(target)

    return renamed


@contextmanager
def unpacked_export(archive: Union[str, Path], keep: bool = False) -> Iterator[Path]:
    """Extract and sanitize archive into a temp dir; removed on exit unless keep"""
    stamp = datetime.now().strftime("%Y%m%d%H%M%S")
    workdir = Path(tempfile.mkdtemp(prefix=f"linktriage_{stamp}_"))
    try:
        extract_archive(archive, workdir)
        count = sanitize_xid_filenames(workdir)
        logger.debug(f"Renamed {count} x-id suffixed entries")
        yield workdir
    finally:
        if keep:
            logger.info(f"Kept extracted files in {workdir}")
        else:
            shutil.rmtree(workdir, ignore_errors=True)
