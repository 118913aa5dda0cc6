from urllib.parse import urlsplit


def normalize_domain(value: str | None) -> str:
    """Reduce a domain, host header or URL to its bare lower-cased host.

    ``"  Shop.Example.com "``, ``"https://shop.example.com/cart"`` and
    ``"shop.example.com:3000"`` all normalize to ``"shop.example.com"``.
    """
    normalized = (value or "").split(",")[0].strip().lower()
    if not normalized:
        return ""

    if "://" in normalized:
        return (urlsplit(normalized).hostname or "").lower()

    normalized = normalized.split("/")[0].strip()
    if ":" in normalized:
        normalized = normalized.split(":")[0].strip()
    return normalized.rstrip(".")
