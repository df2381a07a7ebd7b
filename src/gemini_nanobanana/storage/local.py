"""Local filesystem storage for generated images.

Resolves where an image should be written, never overwrites an existing file,
and writes through a temp file so a crash cannot leave a half-written image
under the final name.

The existence check and the write are two separate steps. Two processes saving
to the same name at the same moment can still race; this store is meant for
one interactive server process.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from gemini_nanobanana.config.constants import DEFAULT_MIME_TYPE, MIME_EXTENSIONS
from gemini_nanobanana.config.logging import get_logger
from gemini_nanobanana.config.settings import Settings
from gemini_nanobanana.exceptions import PersistenceError
from gemini_nanobanana.models.images import SaveTarget

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extension_for(mime_type: str) -> str:
    """Extension (with dot) for an explicit save path without one."""
    return MIME_EXTENSIONS.get(mime_type.lower(), MIME_EXTENSIONS[DEFAULT_MIME_TYPE])


def default_extension_for(mime_type: str) -> str:
    """Extension (without dot) for auto-generated file names: jpg or png."""
    return "jpg" if mime_type.lower() == "image/jpeg" else "png"


def write_atomically(path: Path, content: bytes) -> None:
    """Write bytes via temp file + fsync + os.replace.

    The temp file lives next to the target and is removed if anything fails.
    """
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        with open(tmp, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            tmp.unlink(missing_ok=True)
        except OSError:
            pass
        raise


class LocalImageStorage:
    """Saves generated images to local disk.

    Explicit paths are used as given (plus an extension if they lack one).
    Without a path, a timestamped name in ``default_dir`` is used when
    auto-save is on; otherwise nothing is written.
    """

    def __init__(
        self,
        default_dir: Path | str,
        auto_save: bool = True,
        now_fn: Callable[[], datetime] = _utcnow,
    ):
        self.default_dir = Path(default_dir).expanduser()
        self.auto_save = auto_save
        self._now_fn = now_fn

    @classmethod
    def from_settings(cls, settings: Settings) -> LocalImageStorage:
        return cls(default_dir=settings.default_save_path, auto_save=settings.auto_save)

    def default_filename(
        self,
        tool_name: str,
        mime_type: str,
        directory: Path | None = None,
    ) -> Path:
        """``{directory or default_dir}/{tool}-{YYYY-MM-DD}-{HH-MM-SS}.{ext}``"""
        now = self._now_fn()
        date = now.strftime("%Y-%m-%d")
        time = now.strftime("%H-%M-%S")
        name = f"{tool_name}-{date}-{time}.{default_extension_for(mime_type)}"
        return (directory if directory is not None else self.default_dir) / name

    def resolve_target(
        self,
        target: str | Path | None,
        mime_type: str,
        tool_name: str = "image",
    ) -> SaveTarget | None:
        """Work out directory, stem and extension for a save, without touching disk.

        A target with no file name (``"."`` or ending in a separator) names a
        directory; the file inside it gets an auto-generated name. Symlinks are
        not followed, so a linked name collides like any other existing file.

        Returns None when there is no target and auto-save is off.
        """
        if not target:
            if not self.auto_save:
                return None
            hint = self.default_filename(tool_name, mime_type)
        else:
            hint = Path(target)
            if not hint.name or str(target).endswith(("/", os.sep)):
                hint = self.default_filename(tool_name, mime_type, directory=hint)

        extension = hint.suffix or extension_for(mime_type)
        name = hint.name if hint.suffix else hint.name + extension
        return SaveTarget(
            directory=Path(os.path.abspath(hint.parent)),
            stem=name[: -len(extension)],
            extension=extension,
        )

    def next_free_path(self, target: SaveTarget) -> Path:
        """First of ``name.ext``, ``name_1.ext``, ``name_2.ext`` ... that does not exist."""
        candidate = target.path
        counter = 0
        while candidate.exists() or candidate.is_symlink():
            counter += 1
            candidate = target.with_counter(counter)
            logger.debug("File exists, trying with suffix", extra={"newPath": str(candidate)})
        return candidate

    def save(
        self,
        data: bytes,
        mime_type: str,
        target: str | Path | None = None,
        tool_name: str = "image",
    ) -> Path | None:
        """Write image bytes to disk.

        Args:
            data: Decoded image bytes.
            mime_type: MIME type of the image, used to pick an extension.
            target: Optional explicit path. An existing extension is kept.
            tool_name: Prefix for auto-generated file names.

        Returns:
            The path written, or None if nothing was saved.

        Raises:
            PersistenceError: If the directory cannot be created or the write fails.
        """
        save_target = self.resolve_target(target, mime_type, tool_name)
        if save_target is None:
            return None

        logger.debug(
            "File path resolution",
            extra={"originalPath": str(target) if target else None, "resolved": str(save_target.path)},
        )

        try:
            save_target.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                "Failed to create directory",
                extra={"dir": str(save_target.directory), "error": str(e)},
            )
            raise PersistenceError(f"Failed to create directory: {e}") from e

        final_path = self.next_free_path(save_target)
        try:
            write_atomically(final_path, data)
        except OSError as e:
            logger.error("Image save failed", extra={"path": str(final_path), "error": str(e)})
            raise PersistenceError(f"Failed to save image: {e}") from e

        logger.info(
            "Image saved successfully",
            extra={"path": str(final_path), "sizeKB": round(len(data) / 1024)},
        )
        return final_path
