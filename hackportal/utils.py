import re

_NON_ASCII = re.compile(r"[^\x00-\x7F]")


def strip_non_ascii(value: str) -> str:
    """Remove every non-ASCII character from ``value``."""
    return _NON_ASCII.sub("", value)


def build_cv_key(name: str, email: str, filename: str) -> str:
    """Build the object storage key for an applicant's CV: ``<name>.<email>.<filename>``."""
    parts = [strip_non_ascii(name).strip(), email.strip(), strip_non_ascii(filename).strip()]
    # Keys are flat; path separators would create nested objects
    return ".".join(part.replace("/", "_").replace("\\", "_") for part in parts)
