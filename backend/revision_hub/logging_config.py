"""
Logging configuration.

Text output for local development, JSON lines when ``LOG_FORMAT=json``.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from .settings import settings


class JSONFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:
		log_data: Dict[str, Any] = {
			"timestamp": datetime.now(timezone.utc).isoformat(),
			"level": record.levelname,
			"logger": record.name,
			"message": record.getMessage(),
			"module": record.module,
			"function": record.funcName,
			"line": record.lineno,
		}
		if record.exc_info:
			log_data["exception"] = self.formatException(record.exc_info)
		if hasattr(record, "extra_fields"):
			log_data.update(record.extra_fields)
		return json.dumps(log_data)


def setup_logging() -> logging.Logger:
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	if settings.log_format == "json":
		formatter: logging.Formatter = JSONFormatter()
	else:
		formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

	root_logger = logging.getLogger()
	root_logger.setLevel(log_level)
	root_logger.handlers.clear()

	console_handler = logging.StreamHandler(sys.stdout)
	console_handler.setLevel(log_level)
	console_handler.setFormatter(formatter)
	root_logger.addHandler(console_handler)

	# Noisy libraries
	logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
	logging.getLogger("passlib").setLevel(logging.ERROR)

	return root_logger
