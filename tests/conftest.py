from textwrap import dedent

import pytest


SAMPLE_FILES = {
	"Cargo.toml": """
		[package]
		name = "demo"
		version = "0.1.0"

		[dependencies]
		serde = { version = "1.0", features = ["derive"] }
		anyhow = "1"

		[dev-dependencies]
		tempfile = "3"
	""",
	"src/main.rs": """
		mod parser;
		mod graph;

		use crate::parser::Parser;

		fn main() {
		    let p = Parser::new();
		}
	""",
	"src/parser.rs": """
		use crate::graph::Graph;

		pub struct Parser;

		impl Parser {
		    pub fn new() -> Self { Parser }
		}
	""",
	"src/graph.rs": """
		use crate::parser::Parser;

		pub struct Graph;
	""",
	"src/orphan.rs": """
		pub fn lonely() {}
	""",
	"tests/integration.rs": """
		#[test]
		fn works() {}
	""",
	"target/debug/build/junk.rs": """
		pub fn ignored() {}
	""",
}


@pytest.fixture
def sample_project(tmp_path):
	for rel, text in SAMPLE_FILES.items():
		path = tmp_path / rel
		path.parent.mkdir(parents=True, exist_ok=True)
		path.write_text(dedent(text).lstrip("\n"))
	return tmp_path
