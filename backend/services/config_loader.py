# backend/services/config_loader.py
"""Loading of feature rule documents from disk.

Reads a YAML (or JSON, which YAML accepts) document, validates it and builds
the immutable Configuration. Failures are reported as a ConfigurationResult
with a single descriptive message, never raised.
"""


from __future__ import annotations

import hashlib
from collections import Counter
from pathlib import Path
from typing import Any, Union

import yaml

from models.configuration import Configuration, ConfigurationResult
from observability.logging import get_logger
from validators.configuration_validator import validate_configuration


CONFIG_FILE_NOT_FOUND = "Configuration file not found"
CONFIG_READ_ERROR = "Failed to read configuration file"
CONFIG_PARSE_ERROR = "Failed to parse YAML configuration"
CONFIG_VALIDATION_ERROR = "Configuration validation failed"

logger = get_logger("config_loader")


def parse_document(content: Union[str, bytes]) -> Any:
    """Parse YAML text into a generic tree (dicts, lists, scalars).

    Raises:
        yaml.YAMLError: If the text is not valid YAML.
    """
    return yaml.safe_load(content)


def load_configuration_file(path: Union[str, Path]) -> ConfigurationResult:
    """Load, validate and build a Configuration from ``path``.

    Args:
        path: Location of the YAML document.

    Returns:
        ConfigurationResult carrying either the configuration or the reason
        it could not be loaded.
    """
    path = Path(path)
    log = logger.bind(file_path=str(path))

    if not path.is_file():
        log.error("config_file_not_found")
        return ConfigurationResult(success=False, error=CONFIG_FILE_NOT_FOUND)

    try:
        content = path.read_bytes()
    except OSError as exc:
        log.error("config_file_unreadable", error=str(exc))
        return ConfigurationResult(
            success=False, error=f"{CONFIG_READ_ERROR}: {exc}"
        )

    log = log.bind(file_sha256=hashlib.sha256(content).hexdigest())

    try:
        document = parse_document(content)
    except yaml.YAMLError as exc:
        log.error("config_yaml_parse_error", error=str(exc))
        return ConfigurationResult(
            success=False, error=f"{CONFIG_PARSE_ERROR}: {exc}"
        )

    validation = validate_configuration(document)
    if not validation.is_valid:
        log.error(
            "config_validation_failed",
            validation_error_count=len(validation.errors),
            errors=list(validation.errors),
        )
        return ConfigurationResult(
            success=False,
            error=f"{CONFIG_VALIDATION_ERROR}: {', '.join(validation.errors)}",
        )

    configuration = Configuration.from_document(document)

    duplicates = sorted(
        rule_id
        for rule_id, count in Counter(r.id for r in configuration.rules).items()
        if count > 1
    )
    if duplicates:
        # Allowed, but usually a copy/paste mistake in the document.
        log.warning("config_duplicate_rule_ids", rule_ids=duplicates)

    log.info(
        "config_loaded",
        plan_count=len(configuration.supported_plans),
        region_count=len(configuration.supported_regions),
        feature_count=len(configuration.features),
        rule_count=len(configuration.rules),
    )
    return ConfigurationResult(success=True, configuration=configuration)
