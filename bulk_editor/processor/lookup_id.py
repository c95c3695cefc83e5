"""Recognizes lookup identifiers and content ids embedded in hyperlinks."""

import re
from functools import lru_cache
from urllib.parse import parse_qs, unquote, urlsplit

from bulk_editor.config.settings import DEFAULT_LOOKUP_ID_PATTERN

CANONICAL_URL_TEMPLATE = "https://thesource.cvshealth.com/nuxeo/thesource/#!/view?docid={docid}"

_CONTENT_ID_SUFFIX = re.compile(r"\s*\(([0-9]{5,6})\)\s*$")
_SIX_DIGITS = re.compile(r"[0-9]{6}")


@lru_cache(maxsize=16)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def extract_lookup_id(url: str | None, pattern: str = DEFAULT_LOOKUP_ID_PATTERN) -> str | None:
    """Return the first lookup id found in the URL text, upper-cased, or None."""
    if not url:
        return None
    match = _compile(pattern).search(unquote(url))
    if match is None:
        return None
    return match.group(0).upper()


def extract_doc_id(url: str | None) -> str | None:
    """Return the ``docid`` parameter of a URL, looking in the fragment as well."""
    if not url:
        return None
    parts = urlsplit(url)
    for candidate in (parts.query, parts.fragment.partition("?")[2]):
        values = parse_qs(candidate).get("docid")
        if values:
            return values[0]
    return None


def find_lookup_id(url: str | None, pattern: str = DEFAULT_LOOKUP_ID_PATTERN) -> str | None:
    """Return the pattern match in the URL, falling back to its ``docid`` value."""
    lookup_id = extract_lookup_id(url, pattern)
    if lookup_id is not None:
        return lookup_id
    doc_id = (extract_doc_id(url) or "").strip()
    return doc_id or None


def canonical_url(document_id: str, content_id: str = "") -> str:
    docid = document_id or content_id
    if not docid:
        raise ValueError("A document id or content id is required to build a URL")
    return CANONICAL_URL_TEMPLATE.format(docid=docid)


def pad_content_id(content_id: str | None) -> str:
    """Zero-pad a numeric content id to 6 digits; non-numeric ids are returned stripped."""
    value = (content_id or "").strip()
    if value.isdigit() and len(value) < 6:
        return value.zfill(6)
    return value


def content_id_suffix(content_id: str) -> str:
    return f" ({content_id[-6:]})"


def strip_content_id_suffix(text: str) -> str:
    return _CONTENT_ID_SUFFIX.sub("", text)


def find_content_id_suffix(text: str) -> str | None:
    match = _CONTENT_ID_SUFFIX.search(text)
    return match.group(1) if match else None


def is_valid_content_id(content_id: str) -> bool:
    return bool(_SIX_DIGITS.search(content_id or ""))
