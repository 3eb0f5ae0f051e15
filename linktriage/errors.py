# errors.py
"""
Custom exception classes with improved error messages for linktriage

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context
"""
from pathlib import Path
from typing import Optional, Dict, Any


class TriageError(Exception):
    """Base exception for all linktriage errors"""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"❌ {self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("💡 Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)


class ConfigurationError(TriageError):
    """Configuration is missing or invalid"""
    pass


class ArchiveError(TriageError):
    """Course export archive could not be extracted"""
    pass


class ExportStructureError(TriageError):
    """Extracted export is missing a required file"""
    pass


class DescriptorParseError(TriageError):
    """A content descriptor could not be parsed at all"""
    pass


# Specific error factory functions

def descriptor_parse_error(path: Path, cause: Optional[Exception] = None) -> DescriptorParseError:
    """Create error for a descriptor that cannot be parsed"""
    return DescriptorParseError(
        message=f"Could not parse content descriptor {path.name}",
        suggestion="The item is skipped; open the file to check for truncated or malformed markup",
        context={"file": str(path)},
        cause=cause,
    )


def unsafe_member_error(archive: Path, member: str) -> ArchiveError:
    """Create error for an archive member that would escape the extraction root"""
    return ArchiveError(
        message=f"Refusing to extract unsafe archive member: {member}",
        suggestion="Re-export the course from the LMS; the archive may be corrupt or tampered with",
        context={"archive": str(archive), "member": member},
    )


def missing_manifest_error(export_dir: Path) -> ExportStructureError:
    """Create error when an extracted export has no imsmanifest.xml"""
    return ExportStructureError(
        message="imsmanifest.xml not found in course export",
        suggestion=(
            "Make sure the archive is a full course export (ExportFile_*.zip)\n"
            "  and not a content-collection or archive-only package"
        ),
        context={"export_dir": str(export_dir)},
    )
