import pytest

from crate_analyzer import commands
from crate_analyzer.config import AnalyzerConfig
from crate_analyzer.errors import PathError
from crate_analyzer.model import DependencyType, ModuleType, RelationType, Visibility


def test_analyze_project_builds_structure(sample_project):
	structure = commands.analyze_project(str(sample_project))
	assert structure.root_path == str(sample_project)
	assert [m.id for m in structure.modules] == [
		"src/graph.rs",
		"src/main.rs",
		"src/orphan.rs",
		"src/parser.rs",
		"tests/integration.rs",
	]
	modules = {m.id: m for m in structure.modules}
	assert modules["src/main.rs"].module_type == ModuleType.BINARY
	assert modules["tests/integration.rs"].module_type == ModuleType.TEST
	assert modules["src/parser.rs"].visibility == Visibility.PRIVATE
	assert [i.name for i in modules["src/parser.rs"].items] == ["Parser", "Parser"]

	uses = {(r.from_, r.to) for r in structure.relationships if r.rel_type == RelationType.USES}
	assert uses == {
		("src/main.rs", "src/parser.rs"),
		("src/parser.rs", "src/graph.rs"),
		("src/graph.rs", "src/parser.rs"),
	}


def test_dependencies_come_from_manifest(sample_project):
	structure = commands.analyze_project(str(sample_project))
	assert [(d.name, d.version, d.dep_type) for d in structure.dependencies] == [
		("serde", "1.0", DependencyType.NORMAL),
		("anyhow", "1", DependencyType.NORMAL),
		("tempfile", "3", DependencyType.DEV),
	]


def test_analysis_is_deterministic_across_runs_and_worker_counts(sample_project):
	first = commands.analyze_project(str(sample_project), AnalyzerConfig(workers=4))
	second = commands.analyze_project(str(sample_project), AnalyzerConfig(workers=1))
	assert first == second
	assert first.model_dump() == commands.analyze_project(str(sample_project)).model_dump()


def test_relationships_reference_existing_modules(sample_project):
	structure = commands.analyze_project(str(sample_project))
	ids = [m.id for m in structure.modules]
	assert len(ids) == len(set(ids))
	for rel in structure.relationships:
		assert rel.from_ in ids
		assert rel.to in ids


def test_problems_for_sample_project(sample_project):
	structure = commands.analyze_project(str(sample_project))
	result = commands.analyze_problems(structure)
	assert result.cycles == [["graph", "parser"]]
	assert result.unused_modules == ["orphan"]


def test_empty_root(tmp_path):
	structure = commands.analyze_project(str(tmp_path))
	assert structure.modules == []
	assert structure.relationships == []
	assert structure.dependencies == []
	result = commands.analyze_problems(structure)
	assert result.cycles == []
	assert result.unused_modules == []


def test_malformed_manifest_is_not_fatal(tmp_path):
	(tmp_path / "Cargo.toml").write_text("[dependencies\nbroken")
	(tmp_path / "src").mkdir()
	(tmp_path / "src" / "lib.rs").write_text("pub fn api() {}\n")
	structure = commands.analyze_project(str(tmp_path))
	assert structure.dependencies == []
	assert [m.name for m in structure.modules] == ["lib"]


def test_missing_root_raises(tmp_path):
	with pytest.raises(PathError):
		commands.analyze_project(str(tmp_path / "absent"))


def test_generate_documentation_for_analyzed_project(sample_project):
	structure = commands.analyze_project(str(sample_project))
	path = commands.generate_documentation(structure)
	text = (sample_project / "PROJECT_STRUCTURE.md").read_text()
	assert path.endswith("PROJECT_STRUCTURE.md")
	assert text.count("### `parser`") == 1


def test_file_content_commands(tmp_path):
	path = str(tmp_path / "edit.rs")
	assert commands.save_file_content(path, "fn x(){}") is True
	assert commands.read_file_content(path) == "fn x(){}"


def test_manifest_targets_are_entry_modules(tmp_path):
	(tmp_path / "Cargo.toml").write_text('[[bin]]\nname = "run"\npath = "tools/run.rs"\n\n[build-dependencies]\ncc = { git = "https://example.com/cc" }\n')
	(tmp_path / "tools").mkdir()
	(tmp_path / "tools" / "run.rs").write_text("fn main() {}\n")
	structure = commands.analyze_project(str(tmp_path))
	assert structure.modules[0].module_type == ModuleType.BINARY
	assert [(d.name, d.version, d.dep_type) for d in structure.dependencies] == [("cc", "*", DependencyType.BUILD)]
	assert commands.analyze_problems(structure).unused_modules == []


def test_non_table_target_in_manifest_is_ignored(tmp_path):
	(tmp_path / "Cargo.toml").write_text('target = "x86_64"\n\n[dependencies]\nserde = "1.0"\n')
	(tmp_path / "src").mkdir()
	(tmp_path / "src" / "lib.rs").write_text("pub fn f() {}\n")
	structure = commands.analyze_project(str(tmp_path))
	assert [m.id for m in structure.modules] == ["src/lib.rs"]
	assert [(d.name, d.version) for d in structure.dependencies] == [("serde", "1.0")]
