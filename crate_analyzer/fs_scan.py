from __future__ import annotations

import logging
import os
from typing import Iterator, List, Optional, Tuple

from .config import AnalyzerConfig
from .errors import PathError


logger = logging.getLogger(__name__)

# Cargo compiles each top-level file in these directories as its own crate
CRATE_ROOT_DIRS = ("tests", "examples", "benches")


def to_rel_path(root: str, file_path: str) -> str:
	return os.path.relpath(file_path, root).replace(os.sep, "/")


def to_module_name(rel_path: str) -> str:
	without_ext = os.path.splitext(rel_path)[0]
	parts = without_ext.split("/")
	if parts and parts[0] == "src" and len(parts) > 1:
		parts = parts[1:]
	if len(parts) > 1 and parts[-1] == "mod":
		parts = parts[:-1]
	return "::".join(parts).replace("-", "_")


def is_crate_root_path(rel_path: str) -> bool:
	parts = rel_path.split("/")
	if parts == ["build.rs"]:
		return True
	if len(parts) == 2 and parts[0] in CRATE_ROOT_DIRS:
		return True
	# tests/<name>/main.rs style multi-file targets
	return len(parts) == 3 and parts[0] in CRATE_ROOT_DIRS and parts[2] == "main.rs"


class SourceWalk:
	"""Restartable, lexicographically ordered listing of source files under ``root``.

	Each iteration walks the tree again. Subdirectories that cannot be listed
	are skipped and noted in ``warnings``; an unreadable root raises
	``PathError`` before anything is yielded.
	"""

	def __init__(self, root: str, config: Optional[AnalyzerConfig] = None):
		self.root = os.path.abspath(root)
		self.config = config or AnalyzerConfig()
		self.warnings: List[str] = []
		check_root(self.root)

	def _skip_dir(self, name: str) -> bool:
		return name.startswith(".") or name in self.config.exclude_dirs

	def _warn(self, path: str, err: OSError) -> None:
		message = f"Skipping unreadable directory {path}: {err.strerror or err}"
		logger.warning(message)
		self.warnings.append(message)

	def _walk(self, directory: str, extensions: Tuple[str, ...]) -> Iterator[str]:
		try:
			with os.scandir(directory) as it:
				entries = sorted(it, key=lambda e: e.name)
		except OSError as err:
			if directory == self.root:
				raise PathError(self.root, "Project root is not readable") from err
			self._warn(directory, err)
			return
		# Files and directories are interleaved by name, so paths come out
		# ordered segment by segment
		for entry in entries:
			if entry.is_dir(follow_symlinks=False):
				if not self._skip_dir(entry.name):
					yield from self._walk(entry.path, extensions)
			elif entry.is_file() and not entry.name.startswith("."):
				if entry.name.lower().endswith(extensions):
					yield entry.path

	def __iter__(self) -> Iterator[str]:
		self.warnings = []
		check_root(self.root)
		extensions = tuple(ext.lower() for ext in self.config.extensions)
		yield from self._walk(self.root, extensions)


def check_root(root: str) -> None:
	if not os.path.exists(root):
		raise PathError(root, "Project path does not exist")
	if not os.path.isdir(root):
		raise PathError(root, "Project path is not a directory")
	if not os.access(root, os.R_OK | os.X_OK):
		raise PathError(root, "Project root is not readable")

