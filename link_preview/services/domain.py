from urllib.parse import urlsplit

UNKNOWN_DOMAIN = "unknown"


def _hostname(value: str) -> str:
    try:
        return urlsplit(value).hostname or ""
    except ValueError:
        return ""


def domain_of(url: str) -> str:
    """Return the display domain for ``url`` without touching the network."""
    text = (url or "").strip()
    host = _hostname(text)
    if not host and "://" not in text:
        # Schemeless input such as "example.com/post"
        host = _hostname(f"//{text}")
    if host.startswith("www."):
        host = host[len("www."):]
    return host or text or UNKNOWN_DOMAIN
