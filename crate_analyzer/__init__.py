"""Structural analyzer for Rust source trees.

Modules:
- fs_scan.py: Ordered discovery of source files under a project root.
- extract.py: Line-based extraction of modules, items and use paths.
- manifest.py: Cargo manifest dependencies and explicit targets.
- graph.py: Module identities, relationship edges and the module graph.
- problems.py: Cycle, unused-module and metric checks.
- render.py: Markdown documentation of a project structure.
- files.py: Source file reads and atomic writes.
- commands.py: The operations exposed to the API and CLI.
"""

__all__ = [
	"fs_scan",
	"extract",
	"manifest",
	"graph",
	"problems",
	"render",
	"files",
	"commands",
]
