# backend/services/flag_service.py
"""Feature flag evaluation service.

Sequences the evaluation pipeline: load a configuration, validate the user
context against it, run the rule engine and wrap the outcome into an
EvaluationResult.
"""


from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, List, Mapping, NamedTuple, Optional, Union

from models.configuration import (
    Configuration,
    ConfigurationResult,
    EvaluationResult,
    UserContext,
)
from observability.logging import get_logger
from services.config_loader import load_configuration_file
from services.rule_engine import CONFIG_NOT_LOADED, RuleEngine
from validators.input_validator import InputValidator


# Key under which the app factory stores the evaluator in ``app.extensions``.
EVALUATOR_EXTENSION = "flag_evaluator"

logger = get_logger("flag_service")


class _Armed(NamedTuple):
    """Components bound to one configuration, swapped as a single reference."""
    configuration: Configuration
    input_validator: InputValidator
    rule_engine: RuleEngine


class FeatureFlagEvaluator:
    """Entry point for feature flag evaluation.

    A reload builds a new validator/engine pair for the new configuration and
    replaces the previous pair in one assignment, so a concurrent evaluation
    sees either the old or the new rule set in full. A failed reload leaves
    the active configuration untouched.
    """

    def __init__(self) -> None:
        self._armed: Optional[_Armed] = None
        self._config_path: Optional[Path] = None
        self._reload_lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return self._armed is not None

    @property
    def configuration(self) -> Optional[Configuration]:
        armed = self._armed
        return armed.configuration if armed else None

    @property
    def config_path(self) -> Optional[Path]:
        """Path of the last successfully loaded document."""
        return self._config_path

    def load_configuration(self, path: Union[str, Path]) -> ConfigurationResult:
        """Load a configuration document and make it active on success.

        Args:
            path: Location of the YAML document.

        Returns:
            The loader's ConfigurationResult.
        """
        result = load_configuration_file(path)
        if result.success and result.configuration is not None:
            self.apply_configuration(result.configuration)
            self._config_path = Path(path)
        else:
            logger.warning(
                "configuration_not_applied",
                file_path=str(path),
                error=result.error,
                kept_previous=self.is_configured,
            )
        return result

    def apply_configuration(self, configuration: Configuration) -> None:
        """Make an already validated configuration active."""
        input_validator = InputValidator()
        input_validator.set_configuration(configuration)
        rule_engine = RuleEngine()
        rule_engine.set_configuration(configuration)

        with self._reload_lock:
            self._armed = _Armed(configuration, input_validator, rule_engine)

    def evaluate(
        self, context: Union[UserContext, Mapping[str, Any], None]
    ) -> EvaluationResult:
        """Evaluate the enabled features for a user.

        Args:
            context: A UserContext or its wire form.

        Returns:
            EvaluationResult with the sorted feature ids, or the first error
            (configuration missing or invalid input).
        """
        armed = self._armed
        if armed is None:
            return EvaluationResult.failure(CONFIG_NOT_LOADED)

        validation = armed.input_validator.validate(context)
        if not validation.is_valid:
            logger.info("evaluation_rejected", errors=list(validation.errors))
            return EvaluationResult.failure(validation.errors[0])

        if not isinstance(context, UserContext):
            context = UserContext.from_mapping(context)

        return EvaluationResult.ok(armed.rule_engine.evaluate_rules(context))

    def get_available_features(self) -> List[str]:
        """All feature ids of the catalog, sorted."""
        configuration = self.configuration
        if configuration is None:
            return []
        return sorted(configuration.feature_ids)

    def get_supported_plans(self) -> List[str]:
        configuration = self.configuration
        return list(configuration.supported_plans) if configuration else []

    def get_supported_regions(self) -> List[str]:
        configuration = self.configuration
        return list(configuration.supported_regions) if configuration else []


def create_evaluator(path: Union[str, Path, None] = None) -> FeatureFlagEvaluator:
    """Build an evaluator, loading ``path`` when given.

    A failed load is logged by the loader and leaves the evaluator
    unconfigured; callers check ``is_configured``.
    """
    evaluator = FeatureFlagEvaluator()
    if path:
        evaluator.load_configuration(path)
    return evaluator
