"""Content-safety pipeline for user-submitted text.

Write path: raw text -> `WordMasker.mask` -> `MarkupSanitizer.sanitize` ->
`WordMasker.mask`. The first pass sees the raw text, before markup processing
can split or re-encode a term. The second pass catches terms that only appear
once dropped markup has joined their halves.

Read path: stored text -> `MarkupSanitizer.sanitize` again before it leaves
the service.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from shield_engines.masking_engine import WordMasker
from shield_engines.sanitizer_engine import MarkupSanitizer

POST_MAX_CHARS = 5000
COMMENT_MAX_CHARS = 1000


@dataclass(frozen=True)
class ContentSubmission:
    """Raw user text plus the maximum length allowed for its field."""
    text: str
    max_length: int = POST_MAX_CHARS

    def check(self) -> "ContentSubmission":
        """Validates the submission before it enters the pipeline.

        Raises:
            ValueError: If the text is blank or longer than `max_length`
                codepoints.
        """
        if not self.text or not self.text.strip():
            raise ValueError("Content cannot be empty")
        if len(self.text) > self.max_length:
            raise ValueError(f"Content exceeds the {self.max_length} character limit")
        return self


@dataclass(frozen=True)
class SanitizedContent:
    """Pipeline output: markup-safe text with banned terms masked."""
    text: str
    masked_terms: List[str] = field(default_factory=list)


class SafetyPipeline:
    """Orchestrates masking and sanitization for every inbound text field."""

    def __init__(self, masker: WordMasker, sanitizer: MarkupSanitizer):
        self.masker = masker
        self.sanitizer = sanitizer

    def submit(self, submission: ContentSubmission) -> SanitizedContent:
        """Masks then sanitizes one submission.

        Sanitizing removes markup, which can join the halves of a term that
        was split around a dropped tag or comment (`sp<!-- -->am`), so the
        sanitized text is masked once more. Masking only writes mask
        characters, so the result stays markup-safe.
        """
        masked, found = self.masker.scan(submission.text)
        cleaned, rejoined = self.masker.scan(self.sanitizer.sanitize(masked))
        found.extend(term for term in rejoined if term not in found)
        return SanitizedContent(text=cleaned, masked_terms=found)

    def render(self, stored_text: str) -> str:
        """Sanitizes already-stored text again on its way out."""
        return self.sanitizer.sanitize(stored_text)

    def render_document(self, doc: dict, fields: Sequence[str] = ("content",)) -> dict:
        """Read-path sanitize over the text fields of a stored document."""
        return self.sanitizer.clean_payload(doc, list(fields))

    def probe(self, text: str) -> dict:
        """Runs the write path without persisting anything."""
        result = self.submit(ContentSubmission(text=text))
        return {
            "original": text,
            "filtered": result.text,
            "matched": result.masked_terms,
        }
