from __future__ import annotations

import contextlib
import logging
import os
import stat
import tempfile

from .errors import IoError


logger = logging.getLogger(__name__)

DEFAULT_MODE = 0o666


def read_file_content(path: str) -> str:
	try:
		with open(path, "r", encoding="utf-8", newline="") as fh:
			return fh.read()
	except (OSError, UnicodeDecodeError) as e:
		raise IoError(path, f"Failed to read file ({e})") from e


def _new_file_mode() -> int:
	# os.umask can only be read by setting it
	umask = os.umask(0)
	os.umask(umask)
	return DEFAULT_MODE & ~umask


def write_atomic(path: str, content: str) -> str:
	"""Write ``content`` to ``path`` through a temporary file in the same directory.

	The target is only replaced once the whole text is on disk; on failure the
	temporary file is removed and the previous target, if any, is left alone.
	"""
	target = os.path.abspath(path)
	directory = os.path.dirname(target)
	try:
		mode = stat.S_IMODE(os.stat(target).st_mode)
	except OSError:
		mode = _new_file_mode()
	try:
		fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(target)}.", suffix=".tmp", dir=directory)
	except OSError as e:
		raise IoError(target, f"Cannot create file ({e.strerror or e})") from e
	try:
		with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
			fh.write(content)
		os.chmod(tmp_path, mode)
		os.replace(tmp_path, target)
	except OSError as e:
		with contextlib.suppress(OSError):
			os.unlink(tmp_path)
		raise IoError(target, f"Failed to write file ({e.strerror or e})") from e
	logger.debug("Wrote %d characters to %s", len(content), target)
	return target


def save_file_content(path: str, content: str) -> None:
	write_atomic(path, content)
