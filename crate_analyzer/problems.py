"""Read-only structural checks over a built ``ProjectStructure``.

Nothing here mutates the structure or keeps state between calls.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .config import AnalyzerConfig
from .fs_scan import is_crate_root_path
from .graph import ModuleGraph
from .model import (
	ENTRY_TYPES,
	Module,
	ModuleMetrics,
	ProjectProblems,
	ProjectStructure,
	RelationType,
)


logger = logging.getLogger(__name__)

WHITE, GRAY, BLACK = 0, 1, 2


def normalize_cycle(names: List[str]) -> List[str]:
	"""Rotate a cycle to start at its smallest name (smallest rotation on ties)."""
	smallest = min(names)
	rotations = [names[i:] + names[:i] for i, name in enumerate(names) if name == smallest]
	return min(rotations)


def format_cycle(cycle: List[str]) -> str:
	return " -> ".join(cycle + cycle[:1])


def detect_cycles(structure: ProjectStructure) -> List[List[str]]:
	"""Report every back-edge cycle once, over declares and uses edges.

	Iterative three-color DFS; roots and successors are visited in id order.
	"""
	graph = ModuleGraph.from_structure(structure)
	names = {mod_id: module.name for mod_id, module in graph.nodes.items()}
	color: Dict[str, int] = {mod_id: WHITE for mod_id in graph.nodes}
	cycles: List[List[str]] = []
	seen: Set[Tuple[str, ...]] = set()

	for start in sorted(graph.nodes):
		if color[start] != WHITE:
			continue
		color[start] = GRAY
		path: List[str] = [start]
		position: Dict[str, int] = {start: 0}
		stack: List[Tuple[str, Iterator[str]]] = [(start, iter(graph.successors[start]))]
		while stack:
			node, successors = stack[-1]
			descended = False
			for target in successors:
				if color[target] == WHITE:
					color[target] = GRAY
					position[target] = len(path)
					path.append(target)
					stack.append((target, iter(graph.successors[target])))
					descended = True
					break
				if color[target] == GRAY:
					cycle = normalize_cycle([names[i] for i in path[position[target]:]])
					key = tuple(cycle)
					if key not in seen:
						seen.add(key)
						cycles.append(cycle)
			if not descended:
				stack.pop()
				path.pop()
				del position[node]
				color[node] = BLACK
	return cycles


def is_entry_module(module: Module) -> bool:
	# only file-level ids are paths; nested ids carry a "::name#n" suffix
	if "#" in module.id:
		return module.module_type in ENTRY_TYPES
	return module.module_type in ENTRY_TYPES or is_crate_root_path(module.id)


def find_unused_modules(structure: ProjectStructure) -> List[str]:
	graph = ModuleGraph.from_structure(structure, rel_types=(RelationType.USES,))
	unused = [
		module.name
		for module in structure.modules
		if graph.in_degree(module.id) == 0 and not is_entry_module(module)
	]
	return sorted(unused)


def _count_lines(path: str) -> int:
	try:
		with open(path, "rb") as fh:
			return sum(1 for _ in fh)
	except OSError as e:
		logger.debug("Cannot count lines of %s: %s", path, e)
		return 0


def calculate_metrics(structure: ProjectStructure) -> Dict[str, ModuleMetrics]:
	"""Per-module size and coupling figures keyed by module id.

	Line counts come from the originating file and are only reported for
	file-level modules; nested inline modules report 0.
	"""
	graph = ModuleGraph.from_structure(structure)
	metrics: Dict[str, ModuleMetrics] = {}
	for module in structure.modules:
		nested = "#" in module.id
		metrics[module.id] = ModuleMetrics(
			lines_of_code=0 if nested else _count_lines(module.path),
			incoming_deps=graph.in_degree(module.id),
			outgoing_deps=graph.out_degree(module.id),
			complexity_score=len(module.items),
		)
	return metrics


def analyze(structure: ProjectStructure, config: Optional[AnalyzerConfig] = None) -> ProjectProblems:
	config = config or AnalyzerConfig()
	metrics = calculate_metrics(structure)
	large: List[str] = []
	coupled: List[str] = []
	for module in sorted(structure.modules, key=lambda m: (m.name, m.id)):
		metric = metrics[module.id]
		if metric.lines_of_code > config.large_module_lines:
			large.append(f"{module.name} ({metric.lines_of_code} lines)")
		if metric.incoming_deps > config.coupling_threshold:
			coupled.append(f"{module.name} ({metric.incoming_deps} deps)")
	return ProjectProblems(
		cycles=detect_cycles(structure),
		unused_modules=find_unused_modules(structure),
		large_modules=large,
		highly_coupled=coupled,
	)
