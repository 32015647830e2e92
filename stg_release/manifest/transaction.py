"""Backup / mutate / restore transaction over the build manifest."""

from __future__ import annotations

import logging
import os
import shutil
import signal
import threading
from pathlib import Path
from types import FrameType, TracebackType
from typing import Dict, Optional, Type

from ..errors import ResolverIOError
from .editor import ManifestEdit, remove_target_block

logger = logging.getLogger(__name__)

_GUARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class ManifestTransaction:
    """Temporarily remove a duplicate target from a manifest.

    Use as a context manager: the manifest is restored byte for byte on every
    exit path, including exceptions and SIGTERM/SIGHUP (converted into
    :class:`SystemExit` while the transaction is open). Calling
    :meth:`restore` on a transaction that is not open does nothing.
    """

    def __init__(
        self,
        manifest_path: Path,
        *,
        section: str,
        target: str,
        secondary_path: Optional[Path] = None,
        backup_suffix: str = ".bak",
        guard_signals: bool = True,
    ) -> None:
        self.manifest_path = Path(manifest_path)
        self.section = section
        self.target = target
        self.secondary_path = Path(secondary_path) if secondary_path else None
        self.backup_suffix = backup_suffix
        self.guard_signals = guard_signals
        self.edit: Optional[ManifestEdit] = None
        self._open = False
        self._secondary_moved = False
        self._previous_handlers: Dict[int, object] = {}

    @property
    def manifest_backup(self) -> Path:
        return self.manifest_path.with_name(self.manifest_path.name + self.backup_suffix)

    @property
    def secondary_backup(self) -> Optional[Path]:
        if self.secondary_path is None:
            return None
        return self.secondary_path.with_name(self.secondary_path.name + self.backup_suffix)

    @property
    def is_open(self) -> bool:
        return self._open

    def begin(self) -> ManifestEdit:
        if self._open:
            raise RuntimeError("Manifest transaction already open.")

        backup = self.manifest_backup
        if backup.exists():
            raise ResolverIOError(
                f"Stale manifest backup present at {backup}; restore or remove it before running again.",
                path=str(backup),
            )

        self._move_secondary_aside()
        try:
            shutil.copy2(self.manifest_path, backup)
        except OSError as exc:
            self._move_secondary_back()
            raise ResolverIOError(f"Unable to back up {self.manifest_path}: {exc}", path=str(backup)) from exc
        self._open = True

        try:
            original = self.manifest_path.read_bytes().decode("utf-8", errors="surrogateescape")
            edit = remove_target_block(original, self.section, self.target)
            if edit.removed:
                self.manifest_path.write_bytes(edit.text.encode("utf-8", errors="surrogateescape"))
                logger.info(
                    "removed duplicate [[%s]] '%s' from %s (%s)",
                    self.section,
                    self.target,
                    self.manifest_path.name,
                    edit.strategy,
                )
            else:
                logger.debug("no [[%s]] '%s' block in %s", self.section, self.target, self.manifest_path.name)
        except BaseException:
            self.restore()
            raise
        self.edit = edit
        return edit

    def restore(self) -> bool:
        """Put the manifest and secondary file back; returns False when nothing was open."""

        if not self._open:
            return False
        try:
            os.replace(self.manifest_backup, self.manifest_path)
        finally:
            self._move_secondary_back()
            self._open = False
        logger.debug("restored %s", self.manifest_path.name)
        return True

    def __enter__(self) -> "ManifestTransaction":
        self._install_signal_guard()
        try:
            self.begin()
        except BaseException:
            self._remove_signal_guard()
            raise
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            self.restore()
        finally:
            self._remove_signal_guard()

    def _move_secondary_aside(self) -> None:
        source = self.secondary_path
        destination = self.secondary_backup
        if source is None or destination is None:
            return
        if destination.exists():
            raise ResolverIOError(
                f"Stale backup present at {destination}; restore or remove it before running again.",
                path=str(destination),
            )
        if not source.exists():
            return
        try:
            os.replace(source, destination)
        except OSError as exc:
            raise ResolverIOError(f"Unable to move {source} aside: {exc}", path=str(destination)) from exc
        self._secondary_moved = True
        logger.info("moved %s aside to avoid duplicate target inference", source.name)

    def _move_secondary_back(self) -> None:
        source = self.secondary_path
        destination = self.secondary_backup
        if not self._secondary_moved or source is None or destination is None:
            return
        os.replace(destination, source)
        self._secondary_moved = False

    def _install_signal_guard(self) -> None:
        if not self.guard_signals or threading.current_thread() is not threading.main_thread():
            return
        for signum in _GUARDED_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, _raise_system_exit)

    def _remove_signal_guard(self) -> None:
        while self._previous_handlers:
            signum, handler = self._previous_handlers.popitem()
            signal.signal(signum, handler)  # type: ignore[arg-type]


def _raise_system_exit(signum: int, frame: Optional[FrameType]) -> None:
    raise SystemExit(128 + signum)
