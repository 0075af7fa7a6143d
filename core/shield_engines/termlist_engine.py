"""Banned-term store with lock-free reads and atomic hot reload.

The store publishes one immutable `TermSnapshot` at a time through a single
attribute. Readers grab that reference without locking; `reload()` reads the
source file first and only then swaps the reference, so a reader sees either
the complete old term set or the complete new one.

Source format (UTF-8, one term per line):

    # comment lines and blank lines are ignored
    国家机密
    spam link
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Tuple

from shield_engines.errors import SourceUnavailable, SynchronizationFailure

logger = logging.getLogger("shield.terms")

COMMENT_PREFIX = "#"


def order_terms(terms: Iterable[str]) -> Tuple[str, ...]:
    """Returns the distinct terms longest-first, ties in lexical order."""
    return tuple(sorted(set(terms), key=lambda term: (-len(term), term)))


def parse_terms(lines: Iterable[str]) -> FrozenSet[str]:
    """Builds a term set from raw source lines.

    Each line is stripped; empty lines and `#` comments are skipped and
    duplicates collapse.
    """
    terms = set()
    for line in lines:
        term = line.strip()
        if not term or term.startswith(COMMENT_PREFIX):
            continue
        terms.add(term)
    return frozenset(terms)


@dataclass(frozen=True)
class TermSnapshot:
    """An immutable, versioned view of the banned-term set.

    Attributes:
        terms (FrozenSet[str]): The banned terms.
        version (int): Increments on every successful reload; 0 when empty
            at startup.
        source (Optional[str]): The file the terms were read from.
        loaded_at (datetime): When this snapshot was built (UTC).
        ordered (Tuple[str, ...]): `terms` in masking order, computed once.
    """
    terms: FrozenSet[str] = frozenset()
    version: int = 0
    source: Optional[str] = None
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ordered: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "ordered", order_terms(self.terms))

    def __len__(self):
        return len(self.terms)

    def __contains__(self, term):
        return term in self.terms

    def __iter__(self):
        return iter(self.ordered)


def find_terms(text: str, terms: Iterable[str]) -> List[str]:
    """Lists the banned terms that occur in `text`, in masking order."""
    ordered = terms.ordered if isinstance(terms, TermSnapshot) else order_terms(terms)
    return [term for term in ordered if term in text]


class TermListStore:
    """Owns the current banned-term snapshot.

    Lifecycle: `TermListStore.open(path)` at startup, `reload()` on
    administrative request, `close()` at shutdown.
    """

    def __init__(self, source_path):
        self.source_path = Path(source_path)
        self._snapshot: Optional[TermSnapshot] = TermSnapshot(source=str(self.source_path))
        self._version = 0
        # Serializes writers only; readers never touch it.
        self._write_lock = threading.Lock()

    @classmethod
    def open(cls, source_path) -> "TermListStore":
        """Creates a store and performs the initial load.

        A failed initial load is not fatal: the store starts empty, a warning
        is logged and masking stays a no-op until a reload succeeds.
        """
        store = cls(source_path)
        try:
            count = store.reload()
            logger.info(f"✅ Loaded {count} banned terms from {store.source_path}")
        except SourceUnavailable as e:
            logger.warning(f"⚠️ {e}. Starting with an empty term list.")
        return store

    def load(self) -> FrozenSet[str]:
        """Reads and parses the source file without touching the store.

        Raises:
            SourceUnavailable: If the file is missing, unreadable or not UTF-8.
        """
        try:
            with open(self.source_path, "r", encoding="utf-8-sig") as f:
                return parse_terms(f)
        except (OSError, UnicodeDecodeError) as e:
            raise SourceUnavailable(self.source_path, e) from e

    def reload(self) -> int:
        """Loads the source and atomically publishes it.

        Returns:
            int: The number of terms now in effect.

        Raises:
            SourceUnavailable: The previous snapshot stays in effect.
            SynchronizationFailure: If the store has been closed.
        """
        terms = self.load()

        with self._write_lock:
            if self._snapshot is None:
                raise SynchronizationFailure("Term store is closed")
            self._version += 1
            snapshot = TermSnapshot(
                terms=terms,
                version=self._version,
                source=str(self.source_path),
            )
            self._snapshot = snapshot

        logger.info(f"🔄 Banned term list v{snapshot.version} active ({len(snapshot)} terms)")
        return len(snapshot)

    def current(self) -> TermSnapshot:
        """Returns the published snapshot without locking.

        Raises:
            SynchronizationFailure: If the store has been closed.
        """
        snapshot = self._snapshot
        if snapshot is None:
            raise SynchronizationFailure("Term store is closed")
        return snapshot

    def close(self):
        """Tears the store down; later reads raise `SynchronizationFailure`."""
        with self._write_lock:
            self._snapshot = None
        logger.info("🛑 Banned term store closed")

    @property
    def closed(self) -> bool:
        return self._snapshot is None
