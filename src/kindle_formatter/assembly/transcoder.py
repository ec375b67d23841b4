"""Wrapper around calibre's ``ebook-convert`` command."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from ..core.config import ConversionSettings
from ..core.errors import TranscoderError

LOGGER = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess[Any]]

_MAC_LOCATIONS = (
    Path("/Applications/calibre.app/Contents/MacOS"),
    Path("/usr/local/bin"),
    Path.home() / "Applications/calibre.app/Contents/MacOS",
)
_WINDOWS_LOCATIONS = (
    Path("C:/Program Files/Calibre2"),
    Path("C:/Program Files (x86)/Calibre2"),
    Path(os.environ.get("LOCALAPPDATA", "C:/")) / "Calibre",
)


def find_calibre_path(executable: str = "ebook-convert") -> Path | None:
    """Return the directory containing ``executable`` if one can be found."""
    located = shutil.which(executable)
    if located:
        return Path(located).parent
    if sys.platform == "darwin":
        candidates: Sequence[Path] = _MAC_LOCATIONS
    elif sys.platform == "win32":
        candidates = _WINDOWS_LOCATIONS
        executable = f"{executable}.exe"
    else:
        candidates = ()
    for directory in candidates:
        if (directory / executable).is_file():
            return directory
    return None


class CalibreTranscoder:
    """Convert ebooks between formats with ``ebook-convert``."""

    def __init__(
        self,
        settings: ConversionSettings | None = None,
        *,
        runner: Runner = subprocess.run,
    ) -> None:
        self._settings = settings or ConversionSettings()
        self._runner = runner

    @property
    def command(self) -> str:
        """Executable used for conversions."""
        if self._settings.calibre_path is not None:
            return str(Path(self._settings.calibre_path) / self._settings.ebook_convert)
        return self._settings.ebook_convert

    def is_available(self) -> bool:
        """Return ``True`` when ``ebook-convert --version`` succeeds."""
        try:
            self._runner(
                [self.command, "--version"],
                capture_output=True,
                text=True,
                timeout=30,
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            LOGGER.info("Calibre not available (%s): %s", self.command, exc)
            return False
        return True

    def convert(self, source: Path, target: Path, *extra_args: str) -> Path:
        """Convert ``source`` into ``target``; the target suffix picks the format."""
        source = Path(source)
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        command = [self.command, str(source), str(target), *extra_args]
        LOGGER.info("Converting %s to %s", source.name, target.suffix.lstrip("."))
        try:
            self._runner(
                command,
                capture_output=True,
                text=True,
                timeout=self._settings.convert_timeout_seconds,
                check=True,
            )
        except FileNotFoundError as exc:
            raise TranscoderError(f"{self.command} not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise TranscoderError(
                f"Conversion timed out after {self._settings.convert_timeout_seconds}s"
            ) from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or exc.stdout or "").strip().splitlines()
            reason = detail[-1] if detail else f"exit status {exc.returncode}"
            raise TranscoderError(f"Conversion failed: {reason}") from exc
        except OSError as exc:
            raise TranscoderError(f"Could not run {self.command}: {exc}") from exc

        if not target.is_file():
            raise TranscoderError(f"Conversion produced no output at {target.name}")
        return target

    def pdf_to_epub(self, source: Path, target: Path, *, title: str) -> Path:
        """Convert a PDF into a reflowable EPUB."""
        return self.convert(
            source,
            target,
            "--enable-heuristics",
            "--language",
            self._settings.language,
            "--title",
            title,
        )


__all__ = ["CalibreTranscoder", "find_calibre_path"]
