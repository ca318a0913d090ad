import json
from datetime import datetime

from diaries.domain.entities import DiaryEntry
from shared.exceptions import BackingMediumUnavailableError


def encode_index(entries: dict[str, DiaryEntry]) -> bytes:
    data = {slug: _entry_to_dict(entry) for slug, entry in entries.items()}
    return json.dumps(data, indent=2, sort_keys=True).encode("utf-8")


def decode_index(raw: bytes | str) -> dict[str, DiaryEntry]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
        return {slug: _entry_from_dict(slug, item) for slug, item in data.items()}
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise BackingMediumUnavailableError(f"Index is unreadable: {exc}") from exc


def _entry_to_dict(entry: DiaryEntry) -> dict:
    return {
        "slug": entry.slug,
        "partner1": entry.partner1,
        "partner2": entry.partner2,
        "created_at": entry.created_at.isoformat(),
        "payload_key": entry.payload_key,
    }


def _entry_from_dict(slug: str, item: dict) -> DiaryEntry:
    return DiaryEntry(
        slug=slug,
        partner1=item["partner1"],
        partner2=item["partner2"],
        created_at=datetime.fromisoformat(item["created_at"]),
        payload_key=item["payload_key"],
    )
