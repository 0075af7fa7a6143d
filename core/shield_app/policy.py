"""Content Policy Loader.

This module loads the operational content policy for the Forum Shield
service from an external YAML file (`shield.yaml`): the markup allowlist the
sanitizer enforces, per-field length limits and pagination bounds.

The policy is read once at startup. The markup allowlist it produces is an
immutable `AllowListPolicy`; only the banned-term list is hot-reloadable.

Typical Usage:
    from shield_app.policy import policy
    sanitizer = MarkupSanitizer(policy.allow_list)
"""

import logging
import os

import yaml

from shield_app.config import settings
from shield_engines.pipeline_engine import COMMENT_MAX_CHARS, POST_MAX_CHARS
from shield_engines.sanitizer_engine import (
    DEFAULT_LINK_REL,
    DEFAULT_PROTOCOLS,
    DEFAULT_TAGS,
    AllowListPolicy,
)

logger = logging.getLogger("shield.policy")


class ShieldPolicy:
    """A wrapper around the YAML policy file enforcing default behaviors.

    Missing sections or keys fall back to the secure defaults, and so does an
    unreadable file.
    """

    def __init__(self, config_path: str = "shield.yaml"):
        """Initializes the policy.

        Args:
            config_path (str): Path to the YAML policy file.
        """
        self.config_path = config_path
        self._config = {}
        self.load()

    def load(self):
        """Loads the configuration from disk.

        If the file is missing or invalid, the policy falls back to
        `_default_config()` and logs why.
        """
        if not os.path.exists(self.config_path):
            logger.warning(f"⚠️ Policy file not found at {self.config_path}. Using Defaults.")
            self._config = self._default_config()
            return

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
            logger.info(f"✅ Content Policy loaded from {self.config_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.critical(f"❌ Failed to load content policy: {e}")
            self._config = self._default_config()

    def _default_config(self):
        """Returns the hardcoded configuration used without a policy file."""
        return {
            "sanitization": {
                "allowed_tags": sorted(DEFAULT_TAGS),
                "allowed_attributes": {"a": ["href", "title"]},
                "allowed_protocols": sorted(DEFAULT_PROTOCOLS),
                "link_rel": DEFAULT_LINK_REL,
            },
            "content": {
                "post_max_chars": POST_MAX_CHARS,
                "comment_max_chars": COMMENT_MAX_CHARS,
            },
            "pagination": {
                "default_page_size": 20,
                "max_page_size": 100,
            },
        }

    def _section(self, name: str) -> dict:
        return self._config.get(name) or {}

    def _value(self, section: str, key: str, default):
        """Returns `section.key`, or `default` when it is absent or null."""
        value = self._section(section).get(key)
        return default if value is None else value

    # --- Sanitization ---
    @property
    def allowed_tags(self) -> list:
        """Returns the allowlist of HTML tags for the sanitizer."""
        return self._value("sanitization", "allowed_tags", sorted(DEFAULT_TAGS))

    @property
    def allow_list(self) -> AllowListPolicy:
        """Builds the immutable markup allowlist from the `sanitization` section."""
        return AllowListPolicy.build(
            tags=self.allowed_tags,
            attributes=self._value("sanitization", "allowed_attributes", {"a": ["href", "title"]}),
            protocols=self._value("sanitization", "allowed_protocols", sorted(DEFAULT_PROTOCOLS)),
            link_rel=self._value("sanitization", "link_rel", DEFAULT_LINK_REL),
        )

    # --- Content limits ---
    @property
    def post_max_chars(self) -> int:
        """Maximum post body length in codepoints."""
        return self._value("content", "post_max_chars", POST_MAX_CHARS)

    @property
    def comment_max_chars(self) -> int:
        """Maximum comment body length in codepoints."""
        return self._value("content", "comment_max_chars", COMMENT_MAX_CHARS)

    # --- Pagination ---
    @property
    def default_page_size(self) -> int:
        return self._value("pagination", "default_page_size", 20)

    @property
    def max_page_size(self) -> int:
        return self._value("pagination", "max_page_size", 100)


policy = ShieldPolicy(settings.POLICY_PATH)
