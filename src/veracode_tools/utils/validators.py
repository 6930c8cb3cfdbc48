from urllib.parse import urlparse
import validators as val_lib


def is_identifier(ref: str) -> bool:
    """True when ``ref`` is a canonical dashed GUID (either case). No I/O."""
    if not isinstance(ref, str):
        return False
    ref = ref.strip()
    # uuid parsing also takes bare hex, braces and urn: forms
    if len(ref) != 36 or [len(part) for part in ref.split("-")] != [8, 4, 4, 4, 12]:
        return False
    return bool(val_lib.uuid(ref))


def validate_base_url(url: str) -> tuple[bool, str]:
    """Validate an API base URL. Returns (is_valid, normalized_or_message)."""
    if not url:
        return False, "Base URL cannot be empty"

    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    parsed = urlparse(url)
    if not parsed.hostname:
        return False, "Base URL must have a hostname"

    if parsed.hostname not in ("localhost", "127.0.0.1") and not val_lib.url(url):
        return False, f"Invalid base URL: {url}"

    return True, normalize_base_url(url)


def normalize_base_url(url: str) -> str:
    """Ensure a scheme and exactly one trailing slash."""
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url.rstrip("/") + "/"
