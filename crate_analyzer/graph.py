from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .errors import UnresolvedReference
from .extract import FileExtraction, ModuleDraft
from .model import (
	Dependency,
	Module,
	ProjectStructure,
	RelationType,
	Relationship,
	Visibility,
)


logger = logging.getLogger(__name__)


class ModuleGraph:
	"""Directed graph over module ids.

	Nodes are addressed by id only; adjacency lists hold ids, never modules.
	"""

	def __init__(self):
		self.nodes: Dict[str, Module] = {}
		self.successors: Dict[str, List[str]] = {}
		self.predecessors: Dict[str, List[str]] = {}
		self.edges: List[Tuple[str, str, RelationType]] = []

	def add_node(self, module: Module) -> None:
		self.nodes[module.id] = module
		self.successors.setdefault(module.id, [])
		self.predecessors.setdefault(module.id, [])

	def add_edge(self, source: str, target: str, rel_type: RelationType) -> None:
		"""Add an edge; edges naming an unknown id are ignored."""
		if source in self.nodes and target in self.nodes:
			self.successors[source].append(target)
			self.predecessors[target].append(source)
			self.edges.append((source, target, rel_type))

	@classmethod
	def from_structure(
		cls,
		structure: ProjectStructure,
		rel_types: Iterable[RelationType] = (RelationType.DECLARES, RelationType.USES),
	) -> "ModuleGraph":
		wanted = set(rel_types)
		graph = cls()
		for module in structure.modules:
			graph.add_node(module)
		for rel in structure.relationships:
			if rel.rel_type in wanted:
				graph.add_edge(rel.from_, rel.to, rel.rel_type)
		for targets in graph.successors.values():
			targets.sort()
		return graph

	def in_degree(self, node: str) -> int:
		return len(self.predecessors.get(node, []))

	def out_degree(self, node: str) -> int:
		return len(self.successors.get(node, []))


def module_id(extraction: FileExtraction, draft: ModuleDraft) -> str:
	if draft.ordinal is None:
		return extraction.rel_path
	return f"{extraction.rel_path}::{draft.local_name}#{draft.ordinal}"


def _path_key(draft: ModuleDraft) -> Optional[str]:
	# crate roots (lib.rs, main.rs, tests/x.rs, ...) are not addressable by path
	if draft.parent is None and draft.scope_path != draft.name:
		return None
	return draft.scope_path


class ModuleIndex:
	"""Lookup of module ids by module path, exactly or by trailing segments."""

	def __init__(self):
		self.exact: Dict[str, List[str]] = {}
		self.suffix: Dict[str, List[str]] = {}
		self.file_modules: Dict[str, List[str]] = {}

	def add(self, key: Optional[str], mod_id: str, is_file: bool) -> None:
		if not key:
			return
		if is_file:
			self.file_modules.setdefault(key, []).append(mod_id)
		self.exact.setdefault(key, []).append(mod_id)
		segments = key.split("::")
		for start in range(len(segments)):
			self.suffix.setdefault("::".join(segments[start:]), []).append(mod_id)

	def lookup(self, target: str) -> List[str]:
		return sorted(self.exact.get(target) or self.suffix.get(target) or [])


def _anchor_for(path: str, scope_path: str) -> Tuple[Optional[str], List[str]]:
	segments = [s for s in path.split("::") if s]
	if not segments:
		return None, []
	head = segments[0]
	if head == "crate":
		return "", segments[1:]
	if head == "self":
		return scope_path, segments[1:]
	if head == "super":
		scope = scope_path.split("::") if scope_path else []
		while segments and segments[0] == "super":
			segments = segments[1:]
			scope = scope[:-1]
		return "::".join(scope), segments
	return None, segments


def resolve_use(path: str, source_id: str, scope_path: str, index: ModuleIndex) -> Optional[str]:
	"""Best-effort match of a use path to a module id.

	The longest matching prefix of the path wins; among equally good matches
	the lowest id is taken. Returns ``None`` when the path only names the
	source module itself and raises ``UnresolvedReference`` otherwise.
	"""
	anchor, segments = _anchor_for(path, scope_path)
	for k in range(len(segments), -1, -1):
		tail = "::".join(segments[:k])
		if not tail and not anchor:
			break
		target = f"{anchor}::{tail}" if anchor and tail else (anchor or tail)
		matches = index.lookup(target)
		if not matches:
			continue
		others = [m for m in matches if m != source_id]
		if others:
			return others[0]
		return None
	raise UnresolvedReference(source_id, path)


def build_project(
	root: str,
	extractions: Sequence[FileExtraction],
	dependencies: Sequence[Dependency] = (),
) -> ProjectStructure:
	"""Aggregate per-file extraction results into one ``ProjectStructure``.

	Runs single-threaded after every file has been extracted.
	"""
	entries: List[Tuple[str, FileExtraction, ModuleDraft]] = []
	seen_ids: Set[str] = set()
	index = ModuleIndex()
	for extraction in extractions:
		for draft in extraction.modules:
			mod_id = module_id(extraction, draft)
			if mod_id in seen_ids:
				raise ValueError(f"Duplicate module id {mod_id}")
			seen_ids.add(mod_id)
			entries.append((mod_id, extraction, draft))
			index.add(_path_key(draft), mod_id, draft.parent is None)

	relationships: List[Relationship] = []
	triples: Set[Tuple[str, str, RelationType]] = set()

	def _link(source: str, target: str, rel_type: RelationType) -> None:
		triple = (source, target, rel_type)
		if source == target or triple in triples:
			return
		triples.add(triple)
		relationships.append(Relationship(from_=source, to=target, rel_type=rel_type))

	visibility: Dict[str, Visibility] = {}
	for mod_id, extraction, draft in entries:
		if draft.parent is not None:
			parent_id = module_id(extraction, extraction.modules[draft.parent])
			_link(parent_id, mod_id, RelationType.DECLARES)
		for child_name, child_vis in draft.child_decls:
			candidates = sorted(index.file_modules.get(child_name, []))
			if not candidates:
				logger.debug("%s declares missing module %s", mod_id, child_name)
				continue
			_link(mod_id, candidates[0], RelationType.DECLARES)
			visibility.setdefault(candidates[0], child_vis)

	unresolved = 0
	for mod_id, _extraction, draft in entries:
		for path in draft.uses:
			try:
				target = resolve_use(path, mod_id, draft.scope_path, index)
			except UnresolvedReference as e:
				unresolved += 1
				logger.debug("Dropping use edge: %s", e)
				continue
			if target is not None:
				_link(mod_id, target, RelationType.USES)
	if unresolved:
		logger.info("Dropped %d unresolved use paths", unresolved)

	modules = [
		Module(
			id=mod_id,
			name=draft.name,
			path=extraction.path,
			module_type=draft.module_type,
			visibility=visibility.get(mod_id, draft.visibility),
			items=list(draft.items),
		)
		for mod_id, extraction, draft in entries
	]
	return ProjectStructure(
		root_path=root,
		modules=modules,
		dependencies=list(dependencies),
		relationships=relationships,
	)
