# backend/services/rule_engine.py
"""Rule evaluation engine.

Computes the enabled features for a user context against a validated
Configuration: the sorted, deduplicated union of the features of every rule
whose conditions all match.
"""


from __future__ import annotations

import threading
from enum import Enum
from typing import List, Optional

from models.configuration import (
    Condition,
    ConditionAttribute,
    ConditionOperator,
    Configuration,
    Rule,
    UserContext,
)
from observability.logging import get_logger


CONFIG_NOT_LOADED = "Configuration not loaded - call load_configuration first"

logger = get_logger("rule_engine")


class ConfigurationNotLoadedError(RuntimeError):
    """Raised when rules are evaluated before any configuration was set."""

    def __init__(self, detail: str = CONFIG_NOT_LOADED) -> None:
        super().__init__(detail)
        self.detail = detail


class EngineState(str, Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"


class RuleEngine:
    """Evaluates rules from a validated Configuration.

    The engine does not re-validate its inputs: the configuration must come
    from the configuration validator and the context must already have been
    accepted by the input validator.
    """

    def __init__(self, configuration: Optional[Configuration] = None) -> None:
        self._lock = threading.Lock()
        self._configuration: Optional[Configuration] = None
        if configuration is not None:
            self.set_configuration(configuration)

    @property
    def state(self) -> EngineState:
        if self._configuration is None:
            return EngineState.UNCONFIGURED
        return EngineState.CONFIGURED

    @property
    def is_configured(self) -> bool:
        return self._configuration is not None

    def set_configuration(self, configuration: Configuration) -> None:
        """Swap the active rule set.

        Evaluations already running keep the configuration they started with.
        """
        with self._lock:
            self._configuration = configuration
        logger.info(
            "rule_engine_configured",
            rule_count=len(configuration.rules),
            feature_count=len(configuration.features),
        )

    def _snapshot(self) -> Configuration:
        configuration = self._configuration
        if configuration is None:
            raise ConfigurationNotLoadedError()
        return configuration

    def evaluate_rules(self, context: UserContext) -> List[str]:
        """Return the features enabled for ``context``.

        Args:
            context: A user context accepted by the input validator.

        Returns:
            Sorted, duplicate-free feature ids. Empty when no rule matches.

        Raises:
            ConfigurationNotLoadedError: If no configuration was set.
        """
        configuration = self._snapshot()

        matched = [r for r in configuration.rules if _rule_matches(r, context)]
        features = sorted({f for rule in matched for f in rule.features})
        logger.debug(
            "rules_evaluated",
            user_id=context.user_id,
            matched_rules=[rule.id for rule in matched],
            enabled_count=len(features),
        )
        return features

    def matching_rules(self, context: UserContext) -> List[str]:
        """Ids of the rules matching ``context``, in document order."""
        configuration = self._snapshot()
        return [r.id for r in configuration.rules if _rule_matches(r, context)]


def _rule_matches(rule: Rule, context: UserContext) -> bool:
    """All conditions must match (an empty list matches vacuously)."""
    return all(_condition_matches(c, context) for c in rule.conditions)


def _condition_matches(condition: Condition, context: UserContext) -> bool:
    actual = _context_value(condition.attribute, context)
    expected = condition.value

    if condition.operator == ConditionOperator.EQUALS:
        return actual == expected

    if condition.operator == ConditionOperator.IN:
        if isinstance(expected, str):
            return actual == expected
        return actual in expected

    # Unknown operator -> no match
    return False


def _context_value(attribute: ConditionAttribute, context: UserContext) -> Optional[str]:
    if attribute == ConditionAttribute.USER_ID:
        return context.user_id
    if attribute == ConditionAttribute.REGION:
        return context.region
    if attribute == ConditionAttribute.PLAN:
        return context.plan
    return None
