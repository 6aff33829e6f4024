# JournalSync Utilities Module
# Helper functions for path handling

from journalsync.utils.paths import atomic_write, ensure_dir, expand_path

__all__ = [
    "atomic_write",
    "ensure_dir",
    "expand_path",
]
