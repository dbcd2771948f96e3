"""Error taxonomy shared by every analysis stage.

``PathError`` and ``IoError`` reach the caller and end the run or request.
``ExtractionSkip`` and ``UnresolvedReference`` are raised and caught inside
a stage; they never escape it.
"""

from __future__ import annotations


class AnalyzerError(Exception):
	"""Base class for analyzer errors."""


class PathError(AnalyzerError):
	"""The project root (or a required path) is missing or unreadable."""

	def __init__(self, path: str, reason: str):
		super().__init__(f"{reason}: {path}")
		self.path = path
		self.reason = reason


class IoError(AnalyzerError):
	"""Reading or writing a file failed."""

	def __init__(self, path: str, reason: str):
		super().__init__(f"{reason}: {path}")
		self.path = path
		self.reason = reason


class ExtractionSkip(AnalyzerError):
	"""A source line was not recognized; nothing is emitted for it."""

	def __init__(self, line_no: int, text: str):
		super().__init__(f"line {line_no}: {text.strip()[:80]}")
		self.line_no = line_no
		self.text = text


class UnresolvedReference(AnalyzerError):
	"""A ``use`` target did not match any known module."""

	def __init__(self, module_id: str, target: str):
		super().__init__(f"{module_id}: cannot resolve {target}")
		self.module_id = module_id
		self.target = target
