"""Input validation and audit logging for catalogue operations."""

import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

MAX_UPLOAD_SIZE_MB = 100


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


class ArgumentValidator:
    """Validates tool arguments before they are interpolated into requests."""

    # Identifiers end up in URL paths
    IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z0-9_.:{}\-]+$')
    FORMATTER_PATTERN = re.compile(r'^[A-Za-z0-9_\-]+$')

    @staticmethod
    def validate_identifier(value: Any, label: str = "uuid") -> str:
        """
        Validate a record UUID, internal id or resource id.

        Args:
            value: Identifier to validate
            label: Argument name used in error messages

        Returns:
            The identifier as a string

        Raises:
            ValidationError if identifier is invalid
        """
        if value is None or str(value).strip() == "":
            raise ValidationError(f"'{label}' cannot be empty")

        text = str(value).strip()
        if len(text) > 255:
            raise ValidationError(f"'{label}' too long (max 255 characters)")

        if '..' in text or not ArgumentValidator.IDENTIFIER_PATTERN.match(text):
            raise ValidationError(
                f"'{label}' may only contain letters, numbers, '-', '_', '.', ':' and braces "
                "(it is used in request paths)"
            )
        return text

    @staticmethod
    def validate_formatter(name: str) -> str:
        if not name or not ArgumentValidator.FORMATTER_PATTERN.match(name):
            raise ValidationError(
                "Formatter must be a simple name such as 'xml', 'pdf' or 'full_view'"
            )
        return name

    @staticmethod
    def validate_xpath(xpath: str) -> str:
        if not xpath or not xpath.strip():
            raise ValidationError("XPath cannot be empty")
        if any(ch in xpath for ch in "\r\n\t"):
            raise ValidationError("XPath cannot contain control characters")
        return xpath.strip()

    @staticmethod
    def validate_tag_ids(tags: Any) -> List[int]:
        """
        Validate a list of tag (category) ids.

        Raises:
            ValidationError if the list is empty or holds non-integers
        """
        if not isinstance(tags, list) or not tags:
            raise ValidationError("'tags' must be a non-empty array of tag ids")

        ids = []
        for tag in tags:
            if isinstance(tag, bool):
                raise ValidationError(f"Invalid tag id: {tag!r}")
            if isinstance(tag, float) and tag.is_integer():
                tag = int(tag)
            if not isinstance(tag, int):
                raise ValidationError(f"Invalid tag id: {tag!r} (tag ids are integers, see get_tags)")
            ids.append(tag)
        return ids

    @staticmethod
    def validate_record_id(value: Any) -> int:
        if isinstance(value, bool):
            raise ValidationError("'id' must be a positive integer")
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value.strip())
        if not isinstance(value, int) or value <= 0:
            raise ValidationError("'id' must be a positive integer")
        return value

    @staticmethod
    def validate_bbox(minx: float, miny: float, maxx: float, maxy: float) -> None:
        """
        Validate a WGS84 bounding box.

        Raises:
            ValidationError if coordinates are out of range or inverted
        """
        for name, value, limit in (
            ("minx", minx, 180), ("maxx", maxx, 180),
            ("miny", miny, 90), ("maxy", maxy, 90),
        ):
            if abs(value) > limit:
                raise ValidationError(f"'{name}' out of range (±{limit}): {value}")

        if minx > maxx:
            raise ValidationError("'minx' must not be greater than 'maxx'")
        if miny > maxy:
            raise ValidationError("'miny' must not be greater than 'maxy'")

    @staticmethod
    def validate_file_path(path: str) -> Path:
        """
        Validate a local file to upload.

        Args:
            path: File path to validate

        Returns:
            Resolved path

        Raises:
            ValidationError if the path is missing, not a regular file, or too large
        """
        if not path:
            raise ValidationError("File path cannot be empty")

        try:
            abs_path = Path(path).expanduser().resolve()
        except (OSError, RuntimeError) as e:
            raise ValidationError(f"Invalid file path: {e}")

        if not abs_path.exists():
            raise ValidationError(f"File not found: {path}")

        if not abs_path.is_file():
            raise ValidationError(f"Not a regular file: {path}")

        size_bytes = abs_path.stat().st_size
        max_bytes = MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if size_bytes > max_bytes:
            size_mb = size_bytes / 1024 / 1024
            raise ValidationError(f"File too large: {size_mb:.1f}MB (max {MAX_UPLOAD_SIZE_MB}MB)")

        return abs_path


class AuditLogger:
    """Audit logging for privileged catalogue operations."""

    def __init__(self, log_path: Optional[str] = None):
        """
        Initialize audit logger.

        Args:
            log_path: Path to audit log file (default: .sdi-catalogue-audit.log in cwd)
        """
        self.log_path = Path(log_path) if log_path else Path.cwd() / ".sdi-catalogue-audit.log"

    def log(self, action: str, record: str, details: str, user: str = "mcp-server"):
        """
        Write audit log entry.

        Args:
            action: Action performed (DUPLICATE, UPDATE, TAGS_ADD, FAILED, etc.)
            record: Record UUID or id the action applies to
            details: Additional details
            user: Catalogue user the action ran as
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        log_entry = f"[{timestamp}] USER={user} ACTION={action} RECORD={record} DETAILS={details}\n"

        try:
            with open(self.log_path, 'a') as f:
                f.write(log_entry)
        except OSError as e:
            print(f"Warning: Could not write to audit log: {e}", file=sys.stderr)
