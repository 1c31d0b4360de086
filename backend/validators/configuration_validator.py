# backend/validators/configuration_validator.py
"""Validator for feature rule configuration documents.

Takes the loosely-typed tree produced by the YAML/JSON parser and either
accepts it or reports every defect it can find. Validation never raises for
malformed input: defects are accumulated as human-readable strings so a
document can be fixed in one pass.
"""


from __future__ import annotations

from typing import Any, List, Set

from models.configuration import (
    Configuration,
    ConditionAttribute,
    ConditionOperator,
    ValidationResult,
)


ALLOWED_ATTRIBUTES = frozenset(a.value for a in ConditionAttribute)
ALLOWED_OPERATORS = frozenset(o.value for o in ConditionOperator)


class ConfigurationValidationError(Exception):
    """Raised by :func:`parse_configuration` for an invalid document.

    Attributes:
        errors: Every defect found in the document.
    """

    def __init__(self, errors: List[str]) -> None:
        super().__init__(", ".join(errors))
        self.errors = list(errors)


def _is_non_blank_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _validate_string_list(document: dict, key: str, errors: List[str]) -> Set[str]:
    """Check a supportedPlans/supportedRegions style section.

    Returns:
        The string members of the section, used for referential checks even
        when the section itself is defective.
    """
    values = document.get(key)

    if not isinstance(values, list):
        errors.append(f"{key} must be an array")
        return set()

    if not values:
        errors.append(f"{key} cannot be empty")
        return set()

    if not all(_is_non_blank_string(v) for v in values):
        errors.append(f"All {key} must be non-empty strings")
    else:
        seen: Set[str] = set()
        for value in values:
            if value in seen:
                errors.append(f"Duplicate {key} entry: {value}")
            seen.add(value)

    return {v for v in values if isinstance(v, str)}


def _validate_features(document: dict, errors: List[str]) -> Set[str]:
    """Check the feature catalog.

    Returns:
        Feature ids that can be referenced by rules.
    """
    features = document.get("features")
    feature_ids: Set[str] = set()

    if not isinstance(features, list):
        errors.append("features must be an array")
        return feature_ids

    if not features:
        errors.append("features cannot be empty")
        return feature_ids

    for index, feature in enumerate(features):
        if not isinstance(feature, dict):
            errors.append(f"Feature at index {index} must be an object")
            continue

        feature_id = feature.get("id")
        if not _is_non_blank_string(feature_id):
            errors.append(f"Feature at index {index} must have a non-empty id")
            continue

        if feature_id in feature_ids:
            errors.append(f"Duplicate feature id: {feature_id}")
            continue
        feature_ids.add(feature_id)

        if not _is_non_blank_string(feature.get("name")):
            errors.append(f"Feature {feature_id} must have a non-empty name")

        if "description" in feature and not _is_non_blank_string(
            feature["description"]
        ):
            errors.append(
                f"Feature {feature_id} description must be a non-empty "
                "string if provided"
            )

    return feature_ids


def _referenced_values(value: Any) -> List[Any]:
    """Values a plan/region condition points at, for referential checks.

    A mistyped scalar is still reported as an undefined reference next to its
    type error.
    """
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return [value]


def _is_declared(value: Any, declared: Set[str]) -> bool:
    return isinstance(value, str) and value in declared


def _validate_condition(
    condition: Any,
    label: Any,
    cond_index: int,
    valid_plans: Set[str],
    valid_regions: Set[str],
    errors: List[str],
) -> None:
    prefix = f"Rule {label} condition {cond_index}"

    if not isinstance(condition, dict):
        errors.append(f"{prefix} must be an object")
        return

    attribute = condition.get("attribute")
    operator = condition.get("operator")
    value = condition.get("value")

    if not (isinstance(attribute, str) and attribute in ALLOWED_ATTRIBUTES):
        errors.append(f"{prefix} has invalid attribute: {attribute}")

    operator_known = isinstance(operator, str) and operator in ALLOWED_OPERATORS
    if not operator_known:
        errors.append(f"{prefix} has invalid operator: {operator}")

    if value is None:
        errors.append(f"{prefix} must have a value")
        return

    if operator == ConditionOperator.EQUALS.value and not isinstance(value, str):
        errors.append(f"{prefix} value must be a string")
    elif operator == ConditionOperator.IN.value and not (
        isinstance(value, str)
        or (isinstance(value, list) and all(isinstance(v, str) for v in value))
    ):
        errors.append(f"{prefix} value must be a string or an array of strings")

    # Referential integrity covers both operators; every element of an
    # ``in`` list must be a declared plan/region.
    if not operator_known:
        return

    if attribute == ConditionAttribute.PLAN.value:
        for referenced in _referenced_values(value):
            if not _is_declared(referenced, valid_plans):
                errors.append(f"Rule {label} references undefined plan: {referenced}")
    elif attribute == ConditionAttribute.REGION.value:
        for referenced in _referenced_values(value):
            if not _is_declared(referenced, valid_regions):
                errors.append(
                    f"Rule {label} references undefined region: {referenced}"
                )


def _validate_rules(
    document: dict,
    feature_ids: Set[str],
    valid_plans: Set[str],
    valid_regions: Set[str],
    errors: List[str],
) -> None:
    rules = document.get("rules")

    if not isinstance(rules, list):
        errors.append("rules must be an array")
        return

    if not rules:
        errors.append("rules cannot be empty")
        return

    for index, rule in enumerate(rules):
        if not isinstance(rule, dict):
            errors.append(f"Rule at index {index} must be an object")
            continue

        rule_id = rule.get("id")
        if not _is_non_blank_string(rule_id):
            errors.append(f"Rule at index {index} must have a non-empty id")
        label = rule_id or index

        conditions = rule.get("conditions")
        if not isinstance(conditions, list) or not conditions:
            errors.append(f"Rule {label} must have non-empty conditions array")
        else:
            for cond_index, condition in enumerate(conditions):
                _validate_condition(
                    condition,
                    label,
                    cond_index,
                    valid_plans,
                    valid_regions,
                    errors,
                )

        features = rule.get("features")
        if not isinstance(features, list) or not features:
            errors.append(f"Rule {label} must have non-empty features array")
            continue

        for feature_id in features:
            if not _is_non_blank_string(feature_id):
                errors.append(f"Rule {label} has invalid feature id: {feature_id}")
            elif feature_id not in feature_ids:
                errors.append(
                    f"Rule {label} references undefined feature: {feature_id}"
                )


def validate_configuration(document: Any) -> ValidationResult:
    """Validate a raw configuration document.

    Every section is checked even when an earlier one is broken; referential
    checks use whatever partial information is available.

    Args:
        document: Any parsed YAML/JSON value.

    Returns:
        ValidationResult whose ``errors`` list every defect found.
    """
    if not isinstance(document, dict):
        return ValidationResult.from_errors(["Configuration must be an object"])

    errors: List[str] = []

    valid_plans = _validate_string_list(document, "supportedPlans", errors)
    valid_regions = _validate_string_list(document, "supportedRegions", errors)
    feature_ids = _validate_features(document, errors)
    _validate_rules(document, feature_ids, valid_plans, valid_regions, errors)

    return ValidationResult.from_errors(errors)


def parse_configuration(document: Any) -> Configuration:
    """Validate a raw document and narrow it into a typed Configuration.

    Raises:
        ConfigurationValidationError: If the document has any defect.
    """
    result = validate_configuration(document)
    if not result.is_valid:
        raise ConfigurationValidationError(list(result.errors))
    return Configuration.from_document(document)
