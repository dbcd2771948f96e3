"""Heuristic declaration extractor for Rust sources.

This is a line scanner, not a parser. It keeps a brace depth, blanks out
comments and string literals, and matches each remaining line against a
handful of declaration patterns. Known blind spots: items produced by
macros, ``#[cfg]``-gated alternatives (both are recorded), and declarations
whose keyword and name are split across lines. A line that looks like a
declaration but does not match is skipped; extraction never aborts on
unrecognized syntax.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from .errors import ExtractionSkip
from .fs_scan import is_crate_root_path, to_module_name, to_rel_path
from .model import Item, ItemType, ModuleType, Visibility


logger = logging.getLogger(__name__)

IDENT = r"(?:r#)?[A-Za-z_][A-Za-z0-9_]*"
VIS = r"(?P<vis>pub(?:\s*\([^)]*\))?\s+)?"

MOD_RE = re.compile(rf"^{VIS}mod\s+(?P<name>{IDENT})\s*(?P<tail>[{{;])?")
USE_RE = re.compile(rf"^{VIS}use\s+(?P<body>.*)$")
ITEM_PATTERNS: List[Tuple[ItemType, "re.Pattern[str]"]] = [
	(
		ItemType.FUNCTION,
		re.compile(
			rf"^{VIS}(?:default\s+)?(?:const\s+)?(?:async\s+)?(?:unsafe\s+)?"
			rf"(?:extern\s+(?:\"[^\"]*\"\s+)?)?fn\s+(?P<name>{IDENT})"
		),
	),
	(ItemType.STRUCT, re.compile(rf"^{VIS}struct\s+(?P<name>{IDENT})")),
	(ItemType.ENUM, re.compile(rf"^{VIS}enum\s+(?P<name>{IDENT})")),
	(ItemType.TRAIT, re.compile(rf"^{VIS}(?:unsafe\s+)?(?:auto\s+)?trait\s+(?P<name>{IDENT})")),
	(ItemType.CONST, re.compile(rf"^{VIS}const\s+(?P<name>{IDENT})")),
	(ItemType.STATIC, re.compile(rf"^{VIS}static\s+(?:mut\s+)?(?P<name>{IDENT})")),
	(ItemType.TYPE_ALIAS, re.compile(rf"^{VIS}type\s+(?P<name>{IDENT})")),
]
IMPL_RE = re.compile(r"^(?:unsafe\s+)?impl\b(?P<rest>.*)$")
# Anything that starts like a declaration but matched none of the above
DECL_START_RE = re.compile(
	rf"^{VIS}(?:(?:default|const|async|unsafe|extern)\s+)*"
	r"(?:fn|struct|enum|trait|impl|const|static|type|mod|use)\b"
)

TEST_ATTR_RE = re.compile(r"^#\[\s*(?:[A-Za-z_][\w]*::)*test\s*[\](]")
CFG_TEST_RE = re.compile(r"^#!?\[\s*cfg\s*\(\s*test\s*\)\s*\]")
RAW_STRING_RE = re.compile(r"b?r(#*)\"")
CHAR_LITERAL_RE = re.compile(r"'(?:\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F]{1,6}\}|.)|[^\\'])'")


class ModuleDraft(BaseModel):
	"""A module as seen inside one file, before it gets a project-wide id."""

	name: str
	local_name: str
	scope_path: str
	parent: Optional[int] = None
	ordinal: Optional[int] = None
	visibility: Visibility = Visibility.PUBLIC
	module_type: ModuleType = ModuleType.NORMAL
	test_marked: bool = False
	items: List[Item] = []
	uses: List[str] = []
	# external `mod foo;` declarations: (target module name, visibility)
	child_decls: List[Tuple[str, Visibility]] = []


class FileExtraction(BaseModel):
	path: str
	rel_path: str
	line_count: int = 0
	skipped_lines: int = 0
	modules: List[ModuleDraft] = []


def classify_module_type(
	rel_path: str,
	entry_points: Dict[str, ModuleType],
	test_marked: bool = False,
) -> ModuleType:
	# test_marked reflects markers at this module's own scope only, so a file
	# whose tests sit in an inline `mod tests {}` block stays normal
	parts = rel_path.split("/")
	dirs, filename = parts[:-1], parts[-1]
	if "tests" in dirs or test_marked:
		return ModuleType.TEST
	if "examples" in dirs:
		return ModuleType.EXAMPLE
	if any(d in ("benches", "benchmark", "benchmarks") for d in dirs):
		return ModuleType.BENCHMARK
	if rel_path in entry_points:
		return entry_points[rel_path]
	if filename in entry_points and dirs in ([], ["src"]):
		return entry_points[filename]
	if dirs == ["src", "bin"]:
		return ModuleType.BINARY
	return ModuleType.NORMAL


def _file_scope_path(rel_path: str, module_type: ModuleType) -> str:
	"""Module path that `mod foo;` declarations in this file are relative to."""
	crate_root = module_type in (ModuleType.BINARY, ModuleType.LIBRARY) or is_crate_root_path(rel_path)
	if crate_root or rel_path.endswith("/mod.rs"):
		dirs = rel_path.split("/")[:-1]
		if dirs and dirs[0] == "src":
			dirs = dirs[1:]
		return "::".join(dirs).replace("-", "_")
	return to_module_name(rel_path)


def _join(prefix: str, name: str) -> str:
	if not prefix:
		return name
	if not name:
		return prefix
	return f"{prefix}::{name}"


def _visibility(vis: Optional[str]) -> Visibility:
	# pub(crate), pub(super) and pub(in ..) all count as public
	return Visibility.PUBLIC if vis else Visibility.PRIVATE


class LineCleaner:
	"""Blank out comments and string literal contents, carrying state across lines."""

	def __init__(self) -> None:
		self.block_depth = 0
		self.in_string = False
		self.raw_hashes: Optional[int] = None

	def clean(self, line: str) -> str:
		out: List[str] = []
		i = 0
		n = len(line)
		while i < n:
			if self.block_depth:
				if line.startswith("/*", i):
					self.block_depth += 1
					i += 2
				elif line.startswith("*/", i):
					self.block_depth -= 1
					i += 2
				else:
					i += 1
				continue
			if self.in_string:
				i = self._consume_string(line, i, out)
				continue
			c = line[i]
			if line.startswith("//", i):
				break
			if line.startswith("/*", i):
				self.block_depth = 1
				i += 2
				continue
			prev = line[i - 1] if i else " "
			if c in "br" and not (prev.isalnum() or prev == "_"):
				m = RAW_STRING_RE.match(line, i)
				if m:
					self.in_string = True
					self.raw_hashes = len(m.group(1))
					out.append('"')
					i = m.end()
					continue
			if c == '"':
				self.in_string = True
				self.raw_hashes = None
				out.append('"')
				i += 1
				continue
			if c == "'":
				m = CHAR_LITERAL_RE.match(line, i)
				if m:
					out.append("' '")
					i = m.end()
					continue
			out.append(c)
			i += 1
		return "".join(out)

	def _consume_string(self, line: str, i: int, out: List[str]) -> int:
		if self.raw_hashes is None:
			if line[i] == "\\":
				return i + 2
			if line[i] == '"':
				self.in_string = False
				out.append('"')
			return i + 1
		terminator = '"' + "#" * self.raw_hashes
		if line.startswith(terminator, i):
			self.in_string = False
			self.raw_hashes = None
			out.append('"')
			return i + len(terminator)
		return i + 1


def strip_attributes(code: str) -> Tuple[List[str], str]:
	"""Split leading ``#[..]`` / ``#![..]`` attributes off a cleaned line."""
	attrs: List[str] = []
	rest = code.lstrip()
	while rest.startswith("#[") or rest.startswith("#!["):
		start = rest.index("[")
		depth = 0
		end = None
		for pos in range(start, len(rest)):
			if rest[pos] == "[":
				depth += 1
			elif rest[pos] == "]":
				depth -= 1
				if depth == 0:
					end = pos
					break
		if end is None:
			# attribute continues on the next line
			attrs.append(rest)
			return attrs, ""
		attrs.append(rest[: end + 1])
		rest = rest[end + 1 :].lstrip()
	return attrs, rest


def _split_top_level(text: str) -> List[str]:
	parts: List[str] = []
	depth = 0
	current: List[str] = []
	for c in text:
		if c == "{":
			depth += 1
		elif c == "}":
			depth -= 1
		if c == "," and depth == 0:
			parts.append("".join(current))
			current = []
		else:
			current.append(c)
	parts.append("".join(current))
	return [p for p in parts if p]


def expand_use_tree(tree: str) -> List[str]:
	"""Flatten a use tree such as ``crate::a::{b, c::{d as e, *}}`` into paths."""
	text = re.sub(r"\s+as\s+" + IDENT, "", tree)
	text = re.sub(r"\s+", "", text).rstrip(";")
	if text.startswith("::"):
		text = text[2:]

	def _expand(prefix: str, body: str) -> List[str]:
		paths: List[str] = []
		for part in _split_top_level(body):
			brace = part.find("{")
			if brace >= 0 and part.endswith("}"):
				head = part[:brace].rstrip(":")
				paths.extend(_expand(_join(prefix, head), part[brace + 1 : -1]))
			elif part in ("*", "self"):
				if prefix:
					paths.append(prefix)
			elif part.endswith("::*"):
				paths.append(_join(prefix, part[:-3]))
			else:
				paths.append(_join(prefix, part))
		return paths

	seen: List[str] = []
	for path in _expand("", text):
		if path and path not in seen:
			seen.append(path)
	return seen


def _impl_name(rest: str) -> str:
	text = rest.strip()
	if text.startswith("<"):
		depth = 0
		for pos, c in enumerate(text):
			if c == "<":
				depth += 1
			elif c == ">":
				depth -= 1
				if depth == 0:
					text = text[pos + 1 :]
					break
	text = re.split(r"\{|\bwhere\b", text, maxsplit=1)[0]
	return re.sub(r"\s+", " ", text).strip()


def match_item(code: str, line_no: int) -> Optional[Item]:
	"""Recognize an item declaration on a cleaned line.

	Returns ``None`` for lines that are not declarations and raises
	``ExtractionSkip`` for lines that start like one but cannot be read.
	"""
	for item_type, pattern in ITEM_PATTERNS:
		m = pattern.match(code)
		if m:
			name = m.group("name")
			if name == "_":
				return None
			return Item(name=name, item_type=item_type, visibility=_visibility(m.group("vis")))
	m = IMPL_RE.match(code)
	if m:
		name = _impl_name(m.group("rest"))
		if not name:
			raise ExtractionSkip(line_no, code)
		return Item(name=name, item_type=ItemType.IMPL, visibility=Visibility.PRIVATE)
	if DECL_START_RE.match(code):
		raise ExtractionSkip(line_no, code)
	return None


def _brace_balance(text: str) -> int:
	return text.count("{") - text.count("}")


class _Scope:
	def __init__(self, index: int, body_depth: int):
		self.index = index
		self.body_depth = body_depth


def extract_source(
	text: str,
	path: str,
	rel_path: str,
	entry_points: Dict[str, ModuleType],
) -> FileExtraction:
	"""Scan one file's text into a file module plus its nested inline modules."""
	file_type = classify_module_type(rel_path, entry_points)
	file_module = ModuleDraft(
		name=to_module_name(rel_path),
		local_name=os.path.splitext(os.path.basename(rel_path))[0],
		scope_path=_file_scope_path(rel_path, file_type),
	)
	drafts: List[ModuleDraft] = [file_module]
	stack: List[_Scope] = [_Scope(0, 0)]
	cleaner = LineCleaner()
	depth = 0
	pending_cfg_test = False
	pending_use: Optional[str] = None
	skipped = 0
	lines = text.splitlines()

	for line_no, raw in enumerate(lines, start=1):
		code = cleaner.clean(raw)
		current = stack[-1]
		at_scope = depth == current.body_depth
		attrs, rest = strip_attributes(code)
		stripped = rest.strip()

		if pending_use is not None and DECL_START_RE.match(stripped):
			# unfinished use group; drop it and read this line on its own
			skipped += 1
			logger.debug("%s: line %d: dropped unterminated use %s", rel_path, line_no, pending_use)
			depth = max(0, depth - _brace_balance(pending_use))
			while len(stack) > 1 and depth < stack[-1].body_depth:
				stack.pop()
			current = stack[-1]
			at_scope = depth == current.body_depth
			pending_use = None

		if at_scope:
			for attr in attrs:
				if CFG_TEST_RE.match(attr):
					if attr.startswith("#!"):
						drafts[current.index].test_marked = True
					else:
						pending_cfg_test = True
				elif TEST_ATTR_RE.match(attr):
					drafts[current.index].test_marked = True

		if pending_use is not None:
			pending_use += " " + stripped
			if ";" in pending_use or _brace_balance(pending_use) <= 0:
				drafts[current.index].uses.extend(expand_use_tree(pending_use.split(";", 1)[0]))
				pending_use = None
		elif stripped:
			try:
				use = USE_RE.match(stripped)
				mod = MOD_RE.match(stripped) if at_scope else None
				if use:
					body = use.group("body")
					if ";" in body:
						drafts[current.index].uses.extend(expand_use_tree(body.split(";", 1)[0]))
					elif _brace_balance(body) > 0:
						pending_use = body
					else:
						raise ExtractionSkip(line_no, raw)
				elif mod:
					vis = _visibility(mod.group("vis"))
					parent = drafts[current.index]
					if mod.group("tail") == "{":
						ordinal = sum(1 for d in drafts if d.ordinal is not None)
						child = ModuleDraft(
							name=_join(parent.name, mod.group("name")),
							local_name=mod.group("name"),
							scope_path=_join(parent.scope_path, mod.group("name")),
							parent=current.index,
							ordinal=ordinal,
							visibility=vis,
							test_marked=pending_cfg_test,
						)
						drafts.append(child)
						stack.append(_Scope(len(drafts) - 1, depth + 1))
					elif mod.group("tail") == ";":
						parent.child_decls.append((_join(parent.scope_path, mod.group("name")), vis))
					else:
						raise ExtractionSkip(line_no, raw)
				elif at_scope:
					item = match_item(stripped, line_no)
					if item is not None:
						drafts[current.index].items.append(item)
			except ExtractionSkip as skip:
				skipped += 1
				logger.debug("%s: skipped %s", rel_path, skip)
			pending_cfg_test = False

		depth = max(0, depth + code.count("{") - code.count("}"))
		while len(stack) > 1 and depth < stack[-1].body_depth:
			stack.pop()

	for draft in drafts:
		draft.module_type = _draft_type(draft, drafts, rel_path, entry_points)

	return FileExtraction(
		path=path,
		rel_path=rel_path,
		line_count=len(lines),
		skipped_lines=skipped,
		modules=drafts,
	)


def _draft_type(
	draft: ModuleDraft,
	drafts: List[ModuleDraft],
	rel_path: str,
	entry_points: Dict[str, ModuleType],
) -> ModuleType:
	if draft.parent is None:
		return classify_module_type(rel_path, entry_points, draft.test_marked)
	if draft.test_marked:
		return ModuleType.TEST
	parent_type = drafts[draft.parent].module_type
	if parent_type in (ModuleType.TEST, ModuleType.EXAMPLE, ModuleType.BENCHMARK):
		return parent_type
	return ModuleType.NORMAL


def read_source(path: str) -> str:
	with open(path, "rb") as fh:
		data = fh.read()
	return data.decode("utf-8-sig", errors="replace")


def extract_file(root: str, path: str, entry_points: Dict[str, ModuleType]) -> Optional[FileExtraction]:
	"""Read and scan one file; an unreadable file is logged and yields ``None``."""
	rel_path = to_rel_path(root, path)
	try:
		text = read_source(path)
	except OSError as e:
		logger.warning("Skipping unreadable file %s: %s", path, e)
		return None
	return extract_source(text, path, rel_path, entry_points)
