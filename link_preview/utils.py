import re
import unicodedata

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
MAX_SLUG_LENGTH = 80


def slugify(value: str, fallback: str = "preview") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = unicodedata.normalize("NFKD", value or "")
    normalized = normalized.encode("ascii", "ignore").decode("ascii").lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    normalized = normalized[:MAX_SLUG_LENGTH].rstrip("-")
    return normalized or fallback
