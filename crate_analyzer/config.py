"""Analyzer settings.

Defaults live on ``AnalyzerConfig``; ``AnalyzerConfig.from_env`` overlays
``CRATE_ANALYZER_*`` environment variables on top of them.
"""

from __future__ import annotations

import os
from typing import Dict, List, Set

from pydantic import BaseModel

from .model import ModuleType


ENV_PREFIX = "CRATE_ANALYZER_"


def _get(key: str, default: str = "") -> str:
	return (os.environ.get(ENV_PREFIX + key) or default).strip()


def _split(value: str) -> List[str]:
	return [part.strip() for part in value.split(",") if part.strip()]


class AnalyzerConfig(BaseModel):
	exclude_dirs: Set[str] = {"target", "node_modules", "dist", "build", "__pycache__"}
	extensions: List[str] = [".rs"]
	entry_points: Dict[str, ModuleType] = {
		"main.rs": ModuleType.BINARY,
		"lib.rs": ModuleType.LIBRARY,
	}
	workers: int = 4
	doc_filename: str = "PROJECT_STRUCTURE.md"
	large_module_lines: int = 500
	coupling_threshold: int = 10

	@classmethod
	def from_env(cls) -> "AnalyzerConfig":
		overrides: Dict[str, object] = {}
		if _get("EXCLUDE_DIRS"):
			overrides["exclude_dirs"] = set(_split(_get("EXCLUDE_DIRS")))
		if _get("EXTENSIONS"):
			overrides["extensions"] = _split(_get("EXTENSIONS"))
		if _get("WORKERS"):
			overrides["workers"] = _get("WORKERS")
		if _get("DOC_FILENAME"):
			overrides["doc_filename"] = _get("DOC_FILENAME")
		if _get("LARGE_MODULE_LINES"):
			overrides["large_module_lines"] = _get("LARGE_MODULE_LINES")
		if _get("COUPLING_THRESHOLD"):
			overrides["coupling_threshold"] = _get("COUPLING_THRESHOLD")
		# numbers stay strings here so pydantic reports a bad value by field name
		return cls(**overrides)
