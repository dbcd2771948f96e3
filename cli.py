from __future__ import annotations

import argparse
import json
import sys

import uvicorn

from crate_analyzer import commands
from crate_analyzer.config import AnalyzerConfig
from crate_analyzer.errors import AnalyzerError
from crate_analyzer.logging_setup import configure_logging
from crate_analyzer.problems import format_cycle


def _config(args: argparse.Namespace) -> AnalyzerConfig:
	config = AnalyzerConfig.from_env()
	if args.workers is not None:
		config = config.model_copy(update={"workers": args.workers})
	return config


def cmd_analyze(args: argparse.Namespace) -> None:
	structure = commands.analyze_project(args.path, _config(args))
	print(structure.model_dump_json(by_alias=True, indent=2))


def cmd_problems(args: argparse.Namespace) -> None:
	config = _config(args)
	structure = commands.analyze_project(args.path, config)
	result = commands.analyze_problems(structure, config)
	if args.json:
		print(result.model_dump_json(indent=2))
		return
	print(f"Cycles: {len(result.cycles)}")
	for cycle in result.cycles:
		print(f"  {format_cycle(cycle)}")
	print(f"Unused modules: {len(result.unused_modules)}")
	for name in result.unused_modules:
		print(f"  {name}")
	for title, entries in (("Large modules", result.large_modules), ("Highly coupled", result.highly_coupled)):
		if entries:
			print(f"{title}: {len(entries)}")
			for entry in entries:
				print(f"  {entry}")


def cmd_docs(args: argparse.Namespace) -> None:
	config = _config(args)
	structure = commands.analyze_project(args.path, config)
	print(commands.generate_documentation(structure, args.output, config))


def cmd_serve(args: argparse.Namespace) -> None:
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)


def main() -> None:
	parser = argparse.ArgumentParser(prog="crate-analyzer")
	parser.add_argument("--log-level", default="WARNING")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pa = sub.add_parser("analyze", help="Analyze a project and print its structure as JSON")
	pa.add_argument("path", help="Path to project root")
	pa.add_argument("--workers", type=int)
	pa.set_defaults(func=cmd_analyze)

	pp = sub.add_parser("problems", help="Report dependency cycles and unused modules")
	pp.add_argument("path", help="Path to project root")
	pp.add_argument("--workers", type=int)
	pp.add_argument("--json", action="store_true", help="Print the full report as JSON")
	pp.set_defaults(func=cmd_problems)

	pd = sub.add_parser("docs", help="Write PROJECT_STRUCTURE.md for a project")
	pd.add_argument("path", help="Path to project root")
	pd.add_argument("--output", help="Destination file (default: <root>/PROJECT_STRUCTURE.md)")
	pd.add_argument("--workers", type=int)
	pd.set_defaults(func=cmd_docs)

	ps = sub.add_parser("serve", help="Run FastAPI server")
	ps.add_argument("--host", default="127.0.0.1")
	ps.add_argument("--port", type=int, default=8000)
	ps.add_argument("--reload", action="store_true")
	ps.set_defaults(func=cmd_serve)

	args = parser.parse_args()
	configure_logging(args.log_level)
	try:
		args.func(args)
	except AnalyzerError as e:
		print(f"error: {e}", file=sys.stderr)
		sys.exit(1)


if __name__ == "__main__":
	main()
