from textwrap import dedent

from crate_analyzer.config import AnalyzerConfig
from crate_analyzer.extract import (
	LineCleaner,
	classify_module_type,
	expand_use_tree,
	extract_source,
)
from crate_analyzer.model import ItemType, ModuleType, Visibility


ENTRY_POINTS = AnalyzerConfig().entry_points

SOURCE = dedent(
	"""
	//! Crate docs
	use std::collections::HashMap;
	use crate::{a::X, b::{Y, Z as W}};

	/* block comment
	pub fn hidden() {}
	*/
	pub struct Foo {
	    field: u32,
	}

	pub(crate) enum Kind { A, B }

	const LIMIT: usize = 10;
	pub static mut COUNTER: u32 = 0;
	pub type Alias = Foo;

	pub trait Shape {
	    fn area(&self) -> f64;
	}

	impl Shape for Foo {
	    fn area(&self) -> f64 { 0.0 }
	}

	fn helper() {
	    let s = "fn not_an_item() {";
	    let t = r#"struct Nope { "#;
	}

	pub mod inner {
	    pub fn nested() {}
	    mod deeper {
	        fn deepest() {}
	    }
	}

	#[cfg(test)]
	mod tests {
	    use super::*;

	    #[test]
	    fn it_works() {}
	}
	"""
)


def _extract(text, rel_path="src/shapes.rs"):
	return extract_source(text, "/project/" + rel_path, rel_path, ENTRY_POINTS)


def test_extracts_top_level_items_in_order():
	result = _extract(SOURCE)
	file_module = result.modules[0]
	assert file_module.name == "shapes"
	assert [(i.name, i.item_type) for i in file_module.items] == [
		("Foo", ItemType.STRUCT),
		("Kind", ItemType.ENUM),
		("LIMIT", ItemType.CONST),
		("COUNTER", ItemType.STATIC),
		("Alias", ItemType.TYPE_ALIAS),
		("Shape", ItemType.TRAIT),
		("Shape for Foo", ItemType.IMPL),
		("helper", ItemType.FUNCTION),
	]
	visibility = {i.name: i.visibility for i in file_module.items}
	assert visibility["Foo"] == Visibility.PUBLIC
	assert visibility["Kind"] == Visibility.PUBLIC
	assert visibility["LIMIT"] == Visibility.PRIVATE
	assert visibility["helper"] == Visibility.PRIVATE


def test_comments_and_strings_do_not_produce_items():
	names = [i.name for m in _extract(SOURCE).modules for i in m.items]
	assert "hidden" not in names
	assert "not_an_item" not in names
	assert "Nope" not in names
	assert "area" not in names


def test_nested_modules_and_their_items():
	result = _extract(SOURCE)
	names = [m.name for m in result.modules]
	assert names == ["shapes", "shapes::inner", "shapes::inner::deeper", "shapes::tests"]
	inner, deeper, tests = result.modules[1:]
	assert inner.visibility == Visibility.PUBLIC
	assert deeper.visibility == Visibility.PRIVATE
	assert [i.name for i in inner.items] == ["nested"]
	assert [i.name for i in deeper.items] == ["deepest"]
	assert deeper.parent == 1
	assert [d.ordinal for d in result.modules] == [None, 0, 1, 2]


def test_test_markers_classify_modules():
	result = _extract(SOURCE)
	assert result.modules[0].module_type == ModuleType.NORMAL
	assert result.modules[3].module_type == ModuleType.TEST
	assert result.modules[3].uses == ["super"]


def test_use_paths_are_recorded():
	uses = _extract(SOURCE).modules[0].uses
	assert uses == ["std::collections::HashMap", "crate::a::X", "crate::b::Y", "crate::b::Z"]


def test_multiline_use_statement():
	text = "use crate::{\n    parser::Parser,\n    graph,\n};\nfn main() {}\n"
	result = _extract(text, "src/main.rs")
	assert result.modules[0].uses == ["crate::parser::Parser", "crate::graph"]
	assert [i.name for i in result.modules[0].items] == ["main"]


def test_use_without_semicolon_does_not_swallow_following_items():
	result = _extract("use crate::parser\npub fn a() {}\npub struct B;\npub enum C {}\n")
	assert [i.name for i in result.modules[0].items] == ["a", "B", "C"]
	assert result.modules[0].uses == []
	assert result.skipped_lines == 1


def test_unclosed_use_group_is_dropped_at_next_declaration():
	result = _extract("use crate::{a,\npub fn b() {}\nstruct C;\n")
	assert [i.name for i in result.modules[0].items] == ["b", "C"]
	assert result.modules[0].uses == []
	assert result.skipped_lines == 1


def test_external_module_declarations():
	result = _extract("pub mod parser;\nmod graph;\n", "src/lib.rs")
	assert result.modules[0].child_decls == [
		("parser", Visibility.PUBLIC),
		("graph", Visibility.PRIVATE),
	]
	nested = _extract("mod lexer;\n", "src/parser.rs")
	assert nested.modules[0].child_decls == [("parser::lexer", Visibility.PRIVATE)]


def test_unrecognized_lines_are_skipped_not_fatal():
	result = _extract("pub fn good() {}\nfn\nmod broken\nstruct Ok;\n")
	assert [i.name for i in result.modules[0].items] == ["good", "Ok"]
	assert result.skipped_lines == 2


def test_unbalanced_braces_do_not_abort():
	result = _extract("fn open() {\n    if x {\n}\npub struct Later;\n")
	assert [i.name for i in result.modules[0].items] == ["open"]


def test_expand_use_tree():
	assert expand_use_tree("a::b::{self, c as d, e::*}") == ["a::b", "a::b::c", "a::b::e"]
	assert expand_use_tree("::std::fmt") == ["std::fmt"]


def test_line_cleaner_keeps_lifetimes_and_drops_char_literals():
	cleaner = LineCleaner()
	assert cleaner.clean("fn f<'a>(x: &'a str) { let c = '{'; }").count("{") == 1
	assert cleaner.clean("let s = \"unterminated") == "let s = \""
	assert cleaner.clean("still string\" ; {") == "\" ; {"


def test_classify_module_type():
	entries = ENTRY_POINTS
	assert classify_module_type("src/main.rs", entries) == ModuleType.BINARY
	assert classify_module_type("src/lib.rs", entries) == ModuleType.LIBRARY
	assert classify_module_type("src/bin/tool.rs", entries) == ModuleType.BINARY
	assert classify_module_type("tests/it.rs", entries) == ModuleType.TEST
	assert classify_module_type("examples/demo.rs", entries) == ModuleType.EXAMPLE
	assert classify_module_type("benches/speed.rs", entries) == ModuleType.BENCHMARK
	assert classify_module_type("src/nested/lib.rs", entries) == ModuleType.NORMAL
	assert classify_module_type("src/util.rs", entries, test_marked=True) == ModuleType.TEST
