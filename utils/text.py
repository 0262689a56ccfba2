"""Small string helpers."""

import re
import unicodedata


def slugify(value: str, separator: str = "-") -> str:
    """ASCII-fold, lowercase, and join word runs with the separator."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", separator, normalized.lower())
    return slug.strip(separator)
