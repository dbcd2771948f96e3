from __future__ import annotations

import logging
import os
import re
from typing import Dict, List, Optional, Tuple

from jinja2 import Environment, PackageLoader, StrictUndefined

from .config import AnalyzerConfig
from .files import write_atomic
from .model import Item, ModuleType, ProjectStructure, Visibility


logger = logging.getLogger(__name__)

DEPENDENCY_LABELS: Dict[str, str] = {
	"normal": "Production",
	"dev": "Development",
	"build": "Build",
}

_env = Environment(
	loader=PackageLoader("crate_analyzer", "templates"),
	undefined=StrictUndefined,
	keep_trailing_newline=True,
	trim_blocks=True,
	lstrip_blocks=True,
)


def _node_id(mod_id: str) -> str:
	return "m_" + re.sub(r"[^A-Za-z0-9_]", "_", mod_id)


def _label(text: str) -> str:
	return text.replace('"', "'")


def group_items(items: List[Item]) -> List[Tuple[str, List[Item]]]:
	def by_name(item: Item) -> Tuple[str, str]:
		return (item.name, item.item_type.value)

	public = sorted((i for i in items if i.visibility == Visibility.PUBLIC), key=by_name)
	private = sorted((i for i in items if i.visibility != Visibility.PUBLIC), key=by_name)
	return [("Public", public), ("Private", private)]


def module_tree(structure: ProjectStructure) -> List[str]:
	return [
		"{}{} ({})".format("  " * module.name.count("::"), module.name, module.module_type.value)
		for module in structure.modules
	]


def mermaid_edges(structure: ProjectStructure) -> List[str]:
	names = {module.id: module.name for module in structure.modules}
	edges = sorted({(rel.from_, rel.to, rel.rel_type.value) for rel in structure.relationships})
	lines: List[str] = []
	for source, target, rel_type in edges:
		lines.append(
			f'{_node_id(source)}["{_label(names.get(source, source))}"] -->|{rel_type}| '
			f'{_node_id(target)}["{_label(names.get(target, target))}"]'
		)
	return lines


def render_markdown(structure: ProjectStructure) -> str:
	"""Render the structure to markdown; the same input always gives the same text."""
	sections = [
		{"module": module, "groups": group_items(module.items)}
		for module in sorted(structure.modules, key=lambda m: m.id)
	]
	template = _env.get_template("structure.md.j2")
	return template.render(
		structure=structure,
		public_count=sum(1 for m in structure.modules if m.visibility == Visibility.PUBLIC),
		test_count=sum(1 for m in structure.modules if m.module_type == ModuleType.TEST),
		tree=module_tree(structure),
		dep_labels=DEPENDENCY_LABELS,
		sections=sections,
		edges=mermaid_edges(structure),
	)


def generate_documentation(
	structure: ProjectStructure,
	output_path: Optional[str] = None,
	config: Optional[AnalyzerConfig] = None,
) -> str:
	config = config or AnalyzerConfig()
	target = output_path or os.path.join(structure.root_path, config.doc_filename)
	path = write_atomic(target, render_markdown(structure))
	logger.info("Documentation written to %s", path)
	return path
