"""Result cache — generated blog posts keyed by a fingerprint of text + settings.

The fingerprint is ``{text_hash}_{settings_hash}``: a CRC-32 of the paper text
and a CRC-32 of the canonical JSON of the settings tuple (temperature, emoji
and humor flags, custom prompt, writing style), both in base 36.  Changing any
setting changes the second half, so two runs over the same text with
different settings never share an entry.

A fingerprint match alone is not a hit: the stored entry's arXiv id must also
match the caller's (both absent counts as a match).  Entries never expire.

Persistence is a single JSON object ``{fingerprint: entry}`` loaded once and
rewritten after every ``put`` and ``clear``.  Use the cache as a context
manager to load on entry and save on every exit path::

    with ResultCache(path) as cache:
        entry = cache.get(fingerprint, metadata)
"""

import json
import logging
import time
import zlib
from pathlib import Path

from pydantic import ValidationError

from paperblog.models import CacheEntry, GenerationSettings, PaperMetadata

logger = logging.getLogger(__name__)

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


# ---------------------------------------------------------------------------
# Fingerprint
# ---------------------------------------------------------------------------


def hash_string(value: str) -> str:
    """Non-cryptographic 32-bit hash of ``value`` in base 36."""
    n = zlib.crc32(value.encode("utf-8"))
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


def canonical_settings(settings: GenerationSettings) -> str:
    return json.dumps(settings.model_dump(), sort_keys=True, ensure_ascii=False)


def make_fingerprint(pdf_content: str, settings: GenerationSettings) -> str:
    """Return the cache key for ``pdf_content`` generated under ``settings``."""
    return f"{hash_string(pdf_content)}_{hash_string(canonical_settings(settings))}"


def now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


class ResultCache:
    """JSON-file-backed map from fingerprint to ``CacheEntry``.

    Only one execution context touches a cache instance at a time; there is
    no cross-process locking.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: dict[str, CacheEntry] = {}

    def __enter__(self) -> "ResultCache":
        self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.save()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._entries

    def load(self) -> None:
        """Replace in-memory entries with the snapshot on disk.

        A missing file is an empty cache.  An unreadable file is logged and
        treated as empty so a corrupt snapshot never blocks generation; the
        next ``save`` overwrites it.
        """
        self._entries = {}
        if not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read cache %s: %s", self.path, exc)
            return
        if not isinstance(raw, dict):
            logger.warning("Ignoring cache %s: expected a JSON object", self.path)
            return

        for fingerprint, data in raw.items():
            try:
                self._entries[fingerprint] = CacheEntry.model_validate(data)
            except ValidationError as exc:
                logger.warning("Dropping malformed cache entry %s: %s", fingerprint, exc)
        logger.info("Loaded %d cached entries from %s", len(self._entries), self.path)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        snapshot = {fp: entry.to_wire() for fp, entry in self._entries.items()}
        tmp = self.path.with_name(f"{self.path.name}.tmp")
        tmp.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get(
        self, fingerprint: str, metadata: PaperMetadata | None = None
    ) -> CacheEntry | None:
        """Return the entry for ``fingerprint`` if its paper identity matches.

        Args:
            fingerprint: Key from ``make_fingerprint``.
            metadata:    The current request's metadata; its ``arxiv_id`` must
                         equal the stored entry's.
        """
        entry = self._entries.get(fingerprint)
        if entry is None:
            return None
        stored_id = entry.metadata.arxiv_id if entry.metadata else None
        current_id = metadata.arxiv_id if metadata else None
        if stored_id != current_id:
            logger.debug(
                "Cache entry %s belongs to arXiv id %r, not %r; treating as miss",
                fingerprint,
                stored_id,
                current_id,
            )
            return None
        return entry

    def put(self, fingerprint: str, entry: CacheEntry) -> None:
        self._entries[fingerprint] = entry
        self.save()

    def clear(self) -> None:
        self._entries.clear()
        self.save()


def make_entry(
    fingerprint: str,
    blog_post: str,
    settings: GenerationSettings,
    metadata: PaperMetadata | None = None,
) -> CacheEntry:
    return CacheEntry(
        pdf_hash=fingerprint,
        blog_post=blog_post,
        metadata=metadata,
        timestamp=now_ms(),
        settings=settings,
    )
