"""
Logging setup for the uptime monitoring engine.

The engine ships two dictConfig files next to this module, ``dev`` (debug
level, readable console lines) and ``prod`` (info level, terse lines). The
``custom`` type loads any dictConfig JSON given on the command line instead.
Every record handled by the root handlers carries the ``instance_id`` of the
engine.
"""

import json
import logging.config
import os
from typing import Any, Dict

from uptime_monitor.config import MonitoringContext

BUILTIN_CONFIG_FILES: Dict[str, str] = {
    "dev": "logging-config-dev.json",
    "prod": "logging-config-prod.json",
}
CUSTOM_LOGGING_TYPE = "custom"


def configure_logging(context: MonitoringContext) -> None:
    """
    Applies the logging configuration selected by ``context.logging_type``.

    Raises:
        ValueError: On an empty or unknown type, or a custom type without file.
        RuntimeError: If the selected file cannot be loaded.
    """
    _load_logging_config(_resolve_config_file(context))

    # Records propagated from child loggers only pass through handler filters
    instance_filter = _InstanceIdFilter(instance_id=context.instance_id)
    for handler in logging.getLogger().handlers:
        handler.addFilter(instance_filter)

    logging.debug(f"Logging configured from {context.logging_type} settings.")


def _resolve_config_file(context: MonitoringContext) -> str:
    logging_type = context.logging_type.lower()
    if not logging_type:
        raise ValueError("Logging type must be provided.")
    if logging_type in BUILTIN_CONFIG_FILES:
        return _get_local_package_file_path(BUILTIN_CONFIG_FILES[logging_type])
    if logging_type == CUSTOM_LOGGING_TYPE:
        if not context.logging_config_file:
            raise ValueError("Custom logging configuration file must be provided.")
        return context.logging_config_file
    allowed = ", ".join([*BUILTIN_CONFIG_FILES, CUSTOM_LOGGING_TYPE])
    raise ValueError(f"Invalid logging type: {context.logging_type}. Allowed values are: {allowed}")


def _load_logging_config(config_file: str) -> None:
    """
    Reads a dictConfig document from ``config_file`` and applies it.

    Raises:
        RuntimeError: Wrapping the missing file, JSON or dictConfig error.
    """
    try:
        with open(config_file) as f:
            config: Dict[str, Any] = json.load(f)
    except FileNotFoundError as err:
        raise RuntimeError(f"Logging config file not found: {config_file}") from err
    except json.JSONDecodeError as err:
        raise RuntimeError(f"Invalid JSON format in logging config file: {config_file}") from err
    except OSError as err:
        raise RuntimeError(f"Error loading logging config: {err}") from err

    try:
        logging.config.dictConfig(config)
    except Exception as err:
        raise RuntimeError(f"Error loading logging config: {err}") from err


def _get_local_package_file_path(config_file: str) -> str:
    return os.path.join(os.path.dirname(__file__), config_file)


class _InstanceIdFilter(logging.Filter):
    """Stamps ``record.instance_id``; never drops a record."""

    def __init__(self, instance_id: str) -> None:
        super().__init__()
        self._instance_id: str = instance_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.instance_id = self._instance_id
        return True
