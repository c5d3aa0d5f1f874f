"""Size-bounded metadata encoding for vector entries."""

from collections.abc import Iterable, Mapping
from typing import Any

PERSON_ID_DELIMITER = ","
REPLACEMENT_CHARACTER = "\ufffd"


def to_valid_unicode(value: str) -> str:
    """Replace lone surrogates with U+FFFD so the value can be UTF-8 encoded."""
    return "".join(
        REPLACEMENT_CHARACTER if "\ud800" <= char <= "\udfff" else char for char in value
    )


def truncate_utf8(value: str, max_bytes: int) -> str:
    """Truncate ``value`` to at most ``max_bytes`` UTF-8 bytes.

    Never splits a multi-byte character: a partial trailing sequence is
    dropped. Lone surrogates become U+FFFD. Values already within the limit
    are otherwise returned unchanged.
    """
    value = to_valid_unicode(value)
    encoded = value.encode("utf-8")
    if len(encoded) <= max_bytes:
        return value
    if max_bytes <= 0:
        return ""
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def encode_person_ids(person_ids: Iterable[str]) -> str:
    """Join person ids into their canonical comma-separated form."""
    return PERSON_ID_DELIMITER.join(person_ids)


def decode_person_ids(encoded: str) -> list[str]:
    """Split an encoded person-id string. Empty string decodes to ``[]``."""
    if not encoded:
        return []
    return encoded.split(PERSON_ID_DELIMITER)


def encode_person_ids_with_limit(person_ids: Iterable[str], max_bytes: int) -> str:
    """Encode as many whole person ids as fit within ``max_bytes``.

    Ids are never cut in half; the first id that does not fit ends the list.
    """
    kept: list[str] = []
    size = 0
    for person_id in person_ids:
        person_id = to_valid_unicode(person_id)
        addition = len(person_id.encode("utf-8")) + (1 if kept else 0)
        if size + addition > max_bytes:
            break
        kept.append(person_id)
        size += addition
    return encode_person_ids(kept)


def encode_metadata(metadata: Mapping[str, Any], max_bytes: int) -> dict[str, str]:
    """Encode metadata so that no field exceeds ``max_bytes`` UTF-8 bytes.

    ``person_ids`` may be a list or an already-encoded string and keeps whole
    ids only. ``None`` values are dropped and other values are stringified.
    """
    encoded: dict[str, str] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if key == "person_ids":
            ids = decode_person_ids(value) if isinstance(value, str) else list(value)
            if ids:
                encoded[key] = encode_person_ids_with_limit(ids, max_bytes)
            continue
        encoded[key] = truncate_utf8(str(value), max_bytes)
    return encoded
