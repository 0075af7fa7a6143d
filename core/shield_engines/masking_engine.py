"""Banned-term masking.

Every occurrence of a banned term is replaced by a run of mask characters of
the same codepoint length. Terms are applied longest-first (ties in lexical
order) against the progressively masked text, so a short term can never fire
inside a longer term that has already been hidden:

    terms {"国家", "国家机密"}
    "这里有国家机密和国家信息" -> "这里有****和**信息"
"""

import logging
from typing import Iterable, List, Optional, Tuple

from shield_engines.errors import SynchronizationFailure
from shield_engines.termlist_engine import TermSnapshot, order_terms

logger = logging.getLogger("shield.masker")

MASK_CHAR = "*"


def _masking_order(terms: Iterable[str]) -> Tuple[str, ...]:
    if isinstance(terms, TermSnapshot):
        return terms.ordered
    return order_terms(terms)


def _apply_masks(text: str, ordered: Iterable[str], mask_char: str) -> Tuple[str, List[str]]:
    found = []
    for term in ordered:
        if term in text:
            text = text.replace(term, mask_char * len(term))
            found.append(term)
    return text, found


def mask_terms(text: str, terms: Iterable[str], mask_char: str = MASK_CHAR) -> str:
    """Masks `terms` in `text`. Pure function; works on any iterable of terms."""
    if not text:
        return text
    masked, _ = _apply_masks(text, _masking_order(terms), mask_char)
    return masked


class WordMasker:
    """Masks banned terms using the live snapshot of a `TermListStore`."""

    def __init__(self, store, mask_char: str = MASK_CHAR):
        self.store = store
        self.mask_char = mask_char

    def scan(self, text: str, terms: Optional[Iterable[str]] = None) -> Tuple[str, List[str]]:
        """Masks `text` and reports which terms fired.

        Args:
            text (str): The raw user text.
            terms (Iterable[str], optional): Terms to use instead of the
                store's current snapshot.

        Returns:
            Tuple[str, List[str]]: The masked text and the terms that were
            replaced, in the order they were applied. If no snapshot can be
            obtained the original text is returned unchanged (fail-open).
        """
        if not text:
            return text, []

        if terms is None:
            try:
                terms = self.store.current()
            except SynchronizationFailure as e:
                logger.error(f"❌ Term snapshot unavailable, passing text through unmasked: {e}")
                return text, []

        masked, found = _apply_masks(text, _masking_order(terms), self.mask_char)
        if found:
            logger.info(f"🚫 Masked banned terms: {found}")
        return masked, found

    def mask(self, text: str, terms: Optional[Iterable[str]] = None) -> str:
        """Returns `text` with every banned term masked. See `scan`."""
        masked, _ = self.scan(text, terms)
        return masked
