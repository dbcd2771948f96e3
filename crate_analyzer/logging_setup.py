from __future__ import annotations

import logging
from typing import Optional


_HANDLER: Optional[logging.Handler] = None

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING") -> logging.Logger:
	"""Attach a single stderr handler to the package logger.

	Calling it again only changes the level.
	"""
	global _HANDLER
	logger = logging.getLogger("crate_analyzer")
	if _HANDLER is None:
		_HANDLER = logging.StreamHandler()
		_HANDLER.setFormatter(logging.Formatter(LOG_FORMAT))
		logger.addHandler(_HANDLER)
	logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
	return logger
