"""HTML Sanitization Engine for XSS Protection.

This module rebuilds user-submitted markup from an allowlist using the
`bleach` library (html5lib parser, tree walker and sanitizer filter). Anything
that is not explicitly permitted is removed, however it is spelled, cased or
encoded.

Pipeline for one `sanitize()` call:
1.  **Line breaks**: newlines become `<br>` so they survive as markup.
2.  **Parse**: html5lib builds a tree without filtering any tags yet.
3.  **Drop**: elements outside the allowlist are removed together with their
    whole subtree (the body of a `<script>` never reappears as text).
4.  **Sanitize**: bleach drops attributes outside the per-element allowlist
    and URI values whose scheme is not allowed, and escapes text.
5.  **Links**: every `<a>` gets the policy's `rel` value.
"""

import html
import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from bleach import html5lib_shim
from bleach.sanitizer import BleachSanitizerFilter

logger = logging.getLogger("shield.sanitizer")

DEFAULT_TAGS = frozenset([
    "a", "b", "blockquote", "br", "code", "div", "em", "i",
    "li", "ol", "p", "span", "strong", "u", "ul",
])
DEFAULT_ATTRIBUTES = MappingProxyType({"a": frozenset(["href", "title"])})
DEFAULT_PROTOCOLS = frozenset(["http", "https", "mailto"])
DEFAULT_LINK_REL = "nofollow noreferrer noopener"

LINE_BREAK = "<br>"


@dataclass(frozen=True)
class AllowListPolicy:
    """The immutable allowlist the sanitizer enforces.

    Attributes:
        tags (FrozenSet[str]): Permitted element names. `br` is always added
            so user line breaks survive.
        attributes (Mapping[str, FrozenSet[str]]): Permitted attribute names
            per element.
        protocols (FrozenSet[str]): Permitted URL schemes for URI attributes.
        link_rel (str): `rel` value injected into every anchor.
    """
    tags: FrozenSet[str] = DEFAULT_TAGS
    attributes: Mapping[str, FrozenSet[str]] = field(default_factory=lambda: DEFAULT_ATTRIBUTES)
    protocols: FrozenSet[str] = DEFAULT_PROTOCOLS
    link_rel: str = DEFAULT_LINK_REL

    @classmethod
    def build(
        cls,
        tags: Iterable[str] = DEFAULT_TAGS,
        attributes: Optional[Mapping[str, Iterable[str]]] = None,
        protocols: Iterable[str] = DEFAULT_PROTOCOLS,
        link_rel: str = DEFAULT_LINK_REL,
    ) -> "AllowListPolicy":
        """Normalizes loosely-typed configuration (lists, mixed case) into a policy."""
        if attributes is None:
            attributes = DEFAULT_ATTRIBUTES
        return cls(
            tags=frozenset(t.lower() for t in tags) | {"br"},
            attributes=MappingProxyType({
                tag.lower(): frozenset(a.lower() for a in attrs)
                for tag, attrs in attributes.items()
            }),
            protocols=frozenset(p.lower() for p in protocols),
            link_rel=link_rel,
        )

    def attribute_map(self) -> Dict[str, list]:
        """The attribute allowlist in the plain-dict shape bleach expects."""
        return {tag: sorted(attrs) for tag, attrs in self.attributes.items()}


class DropDisallowedFilter(html5lib_shim.Filter):
    """Removes disallowed elements together with everything inside them."""

    def __init__(self, source, allowed_tags):
        super().__init__(source)
        self.allowed_tags = allowed_tags

    def __iter__(self):
        depth = 0
        for token in super().__iter__():
            token_type = token["type"]
            if depth:
                if token_type == "StartTag":
                    depth += 1
                elif token_type == "EndTag":
                    depth -= 1
                continue

            if token_type in ("StartTag", "EmptyTag", "EndTag"):
                if token["name"] not in self.allowed_tags:
                    if token_type == "StartTag":
                        depth = 1
                    continue
            yield token


class LinkRelFilter(html5lib_shim.Filter):
    """Sets a fixed `rel` attribute on every anchor."""

    def __init__(self, source, rel):
        super().__init__(source)
        self.rel = rel

    def __iter__(self):
        for token in super().__iter__():
            if token["type"] in ("StartTag", "EmptyTag") and token["name"] == "a":
                attrs = dict(token.get("data") or {})
                attrs[(None, "rel")] = self.rel
                token["data"] = attrs
            yield token


class MarkupSanitizer:
    """A configured HTML cleaner enforcing an `AllowListPolicy`.

    html5lib parsers keep per-parse state, so each thread lazily gets its own
    parser and serializer. One `MarkupSanitizer` can be shared freely.
    """

    def __init__(self, policy: Optional[AllowListPolicy] = None):
        self.policy = policy or AllowListPolicy()
        self._local = threading.local()

    def _tools(self):
        tools = getattr(self._local, "tools", None)
        if tools is None:
            parser = html5lib_shim.BleachHTMLParser(
                tags=None,
                strip=True,
                consume_entities=False,
                namespaceHTMLElements=False,
            )
            walker = html5lib_shim.getTreeWalker("etree")
            serializer = html5lib_shim.BleachHTMLSerializer(
                quote_attr_values="always",
                omit_optional_tags=False,
                escape_lt_in_attrs=True,
                resolve_entities=False,
                sanitize=False,
                alphabetical_attributes=False,
            )
            tools = self._local.tools = (parser, walker, serializer)
        return tools

    def sanitize(self, text: str) -> str:
        """Returns `text` reduced to the allowlisted markup.

        Never raises for string input: if the markup machinery fails, the
        text is returned fully escaped with line breaks preserved.
        """
        if not text:
            return ""

        text = text.replace("\r\n", "\n").replace("\r", "\n")
        try:
            return self._clean(text.replace("\n", LINE_BREAK))
        except Exception as e:
            logger.error(f"❌ Markup sanitizer failed, escaping input instead: {e}", exc_info=True)
            return html.escape(text, quote=False).replace("\n", LINE_BREAK)

    def _clean(self, markup: str) -> str:
        parser, walker, serializer = self._tools()
        policy = self.policy

        dom = parser.parseFragment(markup)
        stream = DropDisallowedFilter(walker(dom), policy.tags)
        stream = BleachSanitizerFilter(
            source=stream,
            allowed_tags=policy.tags,
            attributes=policy.attribute_map(),
            allowed_protocols=policy.protocols,
            strip_disallowed_tags=True,
            strip_html_comments=True,
        )
        stream = LinkRelFilter(stream, policy.link_rel)
        return serializer.render(stream)

    def clean_payload(self, data: dict, fields: list = None) -> dict:
        """Recursively sanitizes string values within a dictionary.

        Args:
            data (dict): A stored document, e.g. a post or comment.
            fields (list, optional): Keys to sanitize. If None, every string
                value is sanitized.

        Returns:
            dict: A new dictionary with sanitized string values. The original
            dictionary is left unmodified.
        """
        cleaned = data.copy()

        for key, value in cleaned.items():
            if fields and key not in fields:
                continue

            if isinstance(value, str):
                cleaned[key] = self.sanitize(value)
            elif isinstance(value, dict):
                cleaned[key] = self.clean_payload(value, fields)

        return cleaned
