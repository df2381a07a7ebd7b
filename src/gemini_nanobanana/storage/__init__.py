"""Local storage for generated images."""

from gemini_nanobanana.storage.local import LocalImageStorage, write_atomically

__all__ = ["LocalImageStorage", "write_atomically"]
