"""Command boundary used by the HTTP API and the CLI.

Each call is one synchronous, self-contained run: nothing is cached between
calls, and a failed ``analyze_project`` returns no partial structure.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from . import files, problems, render
from .config import AnalyzerConfig
from .extract import FileExtraction, extract_file
from .fs_scan import SourceWalk
from .graph import build_project
from .manifest import dependencies_from_manifest, entry_points_from_manifest, load_manifest
from .model import ModuleType, ProjectProblems, ProjectStructure


logger = logging.getLogger(__name__)


def analyze_project(root_path: str, config: Optional[AnalyzerConfig] = None) -> ProjectStructure:
	config = config or AnalyzerConfig()
	walk = SourceWalk(root_path, config)
	root = walk.root
	manifest = load_manifest(root)
	entry_points: Dict[str, ModuleType] = dict(config.entry_points)
	entry_points.update(entry_points_from_manifest(manifest))

	paths = list(walk)

	def _extract(path: str) -> Optional[FileExtraction]:
		return extract_file(root, path, entry_points)

	if config.workers > 1 and len(paths) > 1:
		with ThreadPoolExecutor(max_workers=config.workers) as executor:
			# map keeps discovery order
			results = list(executor.map(_extract, paths))
	else:
		results = [_extract(path) for path in paths]

	extractions: List[FileExtraction] = [r for r in results if r is not None]
	skipped = sum(e.skipped_lines for e in extractions)
	structure = build_project(root, extractions, dependencies_from_manifest(manifest))
	logger.info(
		"Analyzed %s: %d files, %d modules, %d relationships (%d lines skipped)",
		root,
		len(extractions),
		len(structure.modules),
		len(structure.relationships),
		skipped,
	)
	return structure


def analyze_problems(structure: ProjectStructure, config: Optional[AnalyzerConfig] = None) -> ProjectProblems:
	return problems.analyze(structure, config)


def generate_documentation(
	structure: ProjectStructure,
	output_path: Optional[str] = None,
	config: Optional[AnalyzerConfig] = None,
) -> str:
	return render.generate_documentation(structure, output_path, config)


def read_file_content(path: str) -> str:
	return files.read_file_content(os.path.abspath(path))


def save_file_content(path: str, content: str) -> bool:
	files.save_file_content(os.path.abspath(path), content)
	return True
