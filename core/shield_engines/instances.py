"""Service registry and initialization manager.

This module wires the content-safety engines together from the active
settings and policy. The result is one explicit `Services` object that the
application stores on `app.state` and hands to request handlers; there is no
module-level global state.

Architecture Note:
    - **TermListStore** is the only shared mutable engine. A failed initial
      load leaves it empty rather than aborting startup.
    - **WordMasker**, **MarkupSanitizer** and **SafetyPipeline** are
      stateless and shared by all requests.
"""

import logging
from dataclasses import dataclass

from shield_engines.masking_engine import WordMasker
from shield_engines.pipeline_engine import SafetyPipeline
from shield_engines.sanitizer_engine import AllowListPolicy, MarkupSanitizer
from shield_engines.termlist_engine import TermListStore

logger = logging.getLogger("shield.services")


@dataclass
class Services:
    """Container for the engines one application instance owns."""
    term_store: TermListStore
    masker: WordMasker
    sanitizer: MarkupSanitizer
    pipeline: SafetyPipeline


def initialize_services(filter_words_path, allow_list: AllowListPolicy = None) -> Services:
    """Bootstraps the engines.

    Args:
        filter_words_path: Path of the banned-term list file.
        allow_list (AllowListPolicy, optional): The markup allowlist. Defaults
            to the built-in policy.

    Returns:
        Services: The ready-to-use engine set.
    """
    logger.info("⚡ Initializing content-safety services...")

    term_store = TermListStore.open(filter_words_path)
    masker = WordMasker(term_store)
    sanitizer = MarkupSanitizer(allow_list)
    pipeline = SafetyPipeline(masker, sanitizer)

    logger.info(
        f"✅ Services ready ({len(term_store.current())} banned terms, "
        f"{len(sanitizer.policy.tags)} allowed tags)"
    )
    return Services(
        term_store=term_store,
        masker=masker,
        sanitizer=sanitizer,
        pipeline=pipeline,
    )


def shutdown_services(services: Services):
    """Releases the engines created by `initialize_services`."""
    services.term_store.close()
    logger.info("🛑 Content-safety services stopped")
