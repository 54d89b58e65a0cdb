"""
Logging configuration.

We use a YAML logging config (`src/geoline/config/logging.yaml`) and then apply
runtime overrides from settings (e.g., `GEOLINE_LOG_LEVEL`).
"""

from __future__ import annotations

import logging.config

from geoline.config.settings import Settings, get_logging_config, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    settings = settings or get_settings()
    config = dict(get_logging_config())

    level = settings.app.log_level.upper()
    config["root"] = {**config.get("root", {}), "level": level}
    loggers = {name: dict(cfg) for name, cfg in config.get("loggers", {}).items()}
    for logger_cfg in loggers.values():
        logger_cfg["level"] = level
    config["loggers"] = loggers
    config["handlers"] = {
        name: {**handler, "level": level} if isinstance(handler, dict) and "level" in handler else handler
        for name, handler in config.get("handlers", {}).items()
    }

    logging.config.dictConfig(config)
