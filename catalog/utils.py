import re
import unicodedata
from typing import Optional

import bleach
from email_validator import EmailNotValidError, validate_email


def sanitize_input(value: Optional[str]) -> str:
    """Sanitize user-supplied text before it is stored for display in the admin.

    - Removes NULL bytes
    - Strips HTML tags using bleach.clean(..., strip=True)
    - Trims whitespace
    """
    if value is None:
        return ""
    val = value.replace("\x00", "")
    val = bleach.clean(val, tags=[], strip=True)
    return val.strip()


def slugify(name: str, max_len: int = 255) -> str:
    norm = unicodedata.normalize("NFKD", (name or "").strip())
    ascii_name = norm.encode("ascii", "ignore").decode("ascii").lower()
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    slug = slug or "item"
    return slug[:max_len]


def normalize_email(value: str) -> str:
    """Return the normalized address or raise ValueError for a malformed one."""
    try:
        info = validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError("Please include a valid email") from e
    return info.normalized
