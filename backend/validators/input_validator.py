# backend/validators/input_validator.py
"""Validation of user contexts against the loaded configuration."""


from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union

from models.configuration import Configuration, UserContext, ValidationResult


MISSING_CONTEXT = "Missing or null user context"
INVALID_USER_ID = "Invalid or empty userId"
UNSUPPORTED_REGION = "Unsupported region"
UNSUPPORTED_PLAN = "Unsupported plan"


class InputValidator:
    """Checks that a user context can be handed to the rule engine.

    ``userId`` must be a non-blank string; ``region`` and ``plan`` must be
    among the supported values of the current configuration. Without a
    configuration no region or plan is supported.
    """

    def __init__(self, configuration: Optional[Configuration] = None) -> None:
        self._configuration = configuration

    def set_configuration(self, configuration: Configuration) -> None:
        self._configuration = configuration

    def validate(
        self, context: Union[UserContext, Mapping[str, Any], None]
    ) -> ValidationResult:
        """Validate a context, reporting every defect in field order.

        Args:
            context: A UserContext or its wire form (``userId``, ``region``,
                ``plan``).

        Returns:
            ValidationResult with the messages of the failing fields.
        """
        if isinstance(context, Mapping):
            context = UserContext.from_mapping(context)

        if not isinstance(context, UserContext):
            return ValidationResult.from_errors([MISSING_CONTEXT])

        configuration = self._configuration
        plans = configuration.supported_plans if configuration else ()
        regions = configuration.supported_regions if configuration else ()

        errors: List[str] = []

        if not isinstance(context.user_id, str) or not context.user_id.strip():
            errors.append(INVALID_USER_ID)

        if not isinstance(context.region, str) or context.region not in regions:
            errors.append(UNSUPPORTED_REGION)

        if not isinstance(context.plan, str) or context.plan not in plans:
            errors.append(UNSUPPORTED_PLAN)

        return ValidationResult.from_errors(errors)
