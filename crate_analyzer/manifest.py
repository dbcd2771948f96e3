from __future__ import annotations

import logging
import os
import tomllib
from typing import Any, Dict, List, Tuple

from .model import Dependency, DependencyType, ModuleType


logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"

DEPENDENCY_TABLES: List[Tuple[str, DependencyType]] = [
	("dependencies", DependencyType.NORMAL),
	("dev-dependencies", DependencyType.DEV),
	("build-dependencies", DependencyType.BUILD),
]


def _version_of(requirement: Any) -> str:
	if isinstance(requirement, str):
		return requirement
	if isinstance(requirement, dict) and isinstance(requirement.get("version"), str):
		return requirement["version"]
	return "*"


def _normalize(path: str) -> str:
	path = path.replace("\\", "/")
	while path.startswith("./"):
		path = path[2:]
	return path


def load_manifest(root: str) -> Dict[str, Any]:
	"""Parse ``Cargo.toml`` under ``root``; missing or malformed manifests give ``{}``."""
	path = os.path.join(root, MANIFEST_NAME)
	if not os.path.isfile(path):
		logger.info("No %s under %s", MANIFEST_NAME, root)
		return {}
	try:
		with open(path, "rb") as fh:
			return tomllib.load(fh)
	except (OSError, tomllib.TOMLDecodeError) as e:
		logger.warning("Failed to parse %s: %s", path, e)
		return {}


def dependencies_from_manifest(manifest: Dict[str, Any]) -> List[Dependency]:
	tables: List[Dict[str, Any]] = [manifest]
	targets = manifest.get("target")
	if isinstance(targets, dict):
		for target in targets.values():
			if isinstance(target, dict):
				tables.append(target)

	deps: List[Dependency] = []
	for table in tables:
		for key, dep_type in DEPENDENCY_TABLES:
			entries = table.get(key) or {}
			if not isinstance(entries, dict):
				continue
			for name, requirement in entries.items():
				deps.append(Dependency(name=name, version=_version_of(requirement), dep_type=dep_type))
	return deps


def entry_points_from_manifest(manifest: Dict[str, Any]) -> Dict[str, ModuleType]:
	"""Explicit ``[lib]`` / ``[[bin]]`` target paths, keyed by root-relative path."""
	entries: Dict[str, ModuleType] = {}
	lib = manifest.get("lib")
	if isinstance(lib, dict) and isinstance(lib.get("path"), str):
		entries[_normalize(lib["path"])] = ModuleType.LIBRARY
	for binary in manifest.get("bin") or []:
		if isinstance(binary, dict) and isinstance(binary.get("path"), str):
			entries[_normalize(binary["path"])] = ModuleType.BINARY
	return entries
