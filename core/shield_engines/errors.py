"""Exception types raised by the content-safety engines.

The engines absorb almost every failure with a safe fallback. The two
exceptions below are the only ones that leave an engine:

- `SourceUnavailable` reaches the caller of `TermListStore.reload()`.
- `SynchronizationFailure` is raised by `TermListStore.current()` and is
  caught by `WordMasker`, which then passes text through unmasked.
"""


class ShieldError(Exception):
    """Base exception for all content-safety engine errors."""
    pass


class SourceUnavailable(ShieldError, OSError):
    """The banned-term source file is missing, unreadable or not valid UTF-8.

    Attributes:
        path (str): The source path that could not be read.
    """
    def __init__(self, path, reason):
        super().__init__(f"Cannot read banned term list '{path}': {reason}")
        self.path = str(path)


class SynchronizationFailure(ShieldError):
    """The term store cannot hand out a snapshot (e.g. it has been closed)."""
    pass
