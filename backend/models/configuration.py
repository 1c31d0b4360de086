# backend/models/configuration.py
"""Data contracts for feature rule evaluation.

Everything here is an immutable value: a loaded ``Configuration`` is never
mutated, a reload builds a new one and swaps the reference.
"""


from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple, Union


class ConditionAttribute(str, Enum):
    """User attributes a rule condition can look at."""
    PLAN = "plan"
    REGION = "region"
    USER_ID = "userId"


class ConditionOperator(str, Enum):
    """Comparison operators supported by rule conditions."""
    EQUALS = "equals"
    IN = "in"


ConditionValue = Union[str, Tuple[str, ...]]


@dataclass(frozen=True)
class FeatureDefinition:
    """Catalog entry for a feature."""
    id: str
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class Condition:
    attribute: ConditionAttribute
    operator: ConditionOperator
    value: ConditionValue


@dataclass(frozen=True)
class Rule:
    """A set of AND-ed conditions enabling a list of features."""
    id: str
    conditions: Tuple[Condition, ...]
    features: Tuple[str, ...]


@dataclass(frozen=True)
class Configuration:
    """Validated, in-memory rule set.

    Attributes:
        supported_plans: Plans a user context may carry, in document order.
        supported_regions: Regions a user context may carry, in document order.
        features: Feature catalog, unique by ``id``.
        rules: Rules in document order.
    """
    supported_plans: Tuple[str, ...]
    supported_regions: Tuple[str, ...]
    features: Tuple[FeatureDefinition, ...]
    rules: Tuple[Rule, ...]

    @property
    def feature_ids(self) -> Tuple[str, ...]:
        """Feature ids in catalog order."""
        return tuple(feature.id for feature in self.features)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Configuration":
        """Build a Configuration from a raw document that already passed
        ``validate_configuration``.

        No checks are repeated here; feeding an unvalidated document may
        raise ``KeyError``/``ValueError``.

        Args:
            document: Parsed YAML/JSON mapping.

        Returns:
            The typed, immutable configuration.
        """
        features = tuple(
            FeatureDefinition(
                id=item["id"],
                name=item["name"],
                description=item.get("description"),
            )
            for item in document["features"]
        )

        rules = tuple(
            Rule(
                id=item["id"],
                conditions=tuple(
                    Condition(
                        attribute=ConditionAttribute(cond["attribute"]),
                        operator=ConditionOperator(cond["operator"]),
                        value=_freeze_value(cond["value"]),
                    )
                    for cond in item["conditions"]
                ),
                features=tuple(item["features"]),
            )
            for item in document["rules"]
        )

        return cls(
            supported_plans=tuple(document["supportedPlans"]),
            supported_regions=tuple(document["supportedRegions"]),
            features=features,
            rules=rules,
        )


def _freeze_value(value: Union[str, List[str]]) -> ConditionValue:
    if isinstance(value, list):
        return tuple(value)
    return value


@dataclass(frozen=True)
class UserContext:
    """Per-request attributes of the user being evaluated."""
    user_id: str
    region: str
    plan: str

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "UserContext":
        """Read a context from its wire form (``userId``, ``region``, ``plan``).

        Missing keys become ``None`` so the input validator can report them.
        """
        return cls(
            user_id=payload.get("userId"),
            region=payload.get("region"),
            plan=payload.get("plan"),
        )


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[str, ...] = ()

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=tuple(errors))

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "errors": list(self.errors)}


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of a single evaluation.

    On success ``features`` holds the sorted feature ids (possibly empty);
    on failure ``error`` holds a single message. Never both.
    """
    success: bool
    features: Optional[Tuple[str, ...]] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, features: List[str]) -> "EvaluationResult":
        return cls(success=True, features=tuple(features))

    @classmethod
    def failure(cls, error: str) -> "EvaluationResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        """Serialize into the JSON response shape."""
        if self.success:
            return {"success": True, "features": list(self.features or ())}
        return {"success": False, "error": self.error}


@dataclass(frozen=True)
class ConfigurationResult:
    """Outcome of loading a configuration document."""
    success: bool
    configuration: Optional[Configuration] = None
    error: Optional[str] = None
