# backend/tests/test_flag_service.py
"""
Tests for configuration loading and the FeatureFlagEvaluator orchestrator.

These tests load the YAML fixtures under tests/fixtures and check the
complete flow: load -> validate input -> run rules -> format result,
including reloads and failed reloads.
"""


import threading

import pytest

from models.configuration import UserContext
from services import config_loader
from services.config_loader import (
    CONFIG_FILE_NOT_FOUND,
    CONFIG_PARSE_ERROR,
    CONFIG_VALIDATION_ERROR,
    load_configuration_file,
)
from services.flag_service import FeatureFlagEvaluator, create_evaluator
from services.rule_engine import CONFIG_NOT_LOADED
from validators.configuration_validator import parse_configuration


@pytest.fixture
def evaluator():
    return FeatureFlagEvaluator()


# ---------- Loader ----------


def test_load_sample_configuration(fixtures_dir):
    result = load_configuration_file(fixtures_dir / "sample-config.yml")

    assert result.success is True
    assert result.error is None
    assert result.configuration.supported_plans == ("Basic", "Pro")
    assert len(result.configuration.features) == 9
    assert len(result.configuration.rules) == 4


def test_load_missing_file(fixtures_dir):
    result = load_configuration_file(fixtures_dir / "nonexistent-config.yml")

    assert result.success is False
    assert result.error == CONFIG_FILE_NOT_FOUND
    assert result.configuration is None


def test_load_invalid_document_joins_errors(fixtures_dir):
    result = load_configuration_file(fixtures_dir / "invalid-config.yml")

    assert result.success is False
    assert result.error.startswith(f"{CONFIG_VALIDATION_ERROR}: ")
    assert "supportedPlans cannot be empty" in result.error
    assert "references undefined feature: ghost-feature" in result.error


def test_load_malformed_yaml(fixtures_dir):
    result = load_configuration_file(fixtures_dir / "malformed-config.yml")

    assert result.success is False
    assert result.error.startswith(f"{CONFIG_PARSE_ERROR}: ")


def test_load_empty_file(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")

    result = load_configuration_file(path)

    assert result.error == f"{CONFIG_VALIDATION_ERROR}: Configuration must be an object"


def test_load_json_document(tmp_path, sample_document):
    import json

    path = tmp_path / "rules.json"
    path.write_text(json.dumps(sample_document))

    assert load_configuration_file(path).success is True


def test_duplicate_rule_ids_only_warn(tmp_path, sample_document, monkeypatch):
    import yaml

    sample_document["rules"][1]["id"] = "pro-plan-features"
    path = tmp_path / "dup.yml"
    path.write_text(yaml.safe_dump(sample_document))

    warnings = []

    class _Recorder:
        def bind(self, **_):
            return self

        def warning(self, event, **kw):
            warnings.append((event, kw))

        def info(self, *_, **__):
            pass

        error = info

    monkeypatch.setattr(config_loader, "logger", _Recorder())

    result = load_configuration_file(path)

    assert result.success is True
    assert warnings == [
        ("config_duplicate_rule_ids", {"rule_ids": ["pro-plan-features"]})
    ]


# ---------- Evaluator ----------


def test_evaluate_before_loading(evaluator):
    result = evaluator.evaluate(UserContext("u1", "US", "Pro"))

    assert result.success is False
    assert result.error == CONFIG_NOT_LOADED
    assert result.features is None


def test_query_methods_before_loading(evaluator):
    assert evaluator.is_configured is False
    assert evaluator.get_available_features() == []
    assert evaluator.get_supported_plans() == []
    assert evaluator.get_supported_regions() == []


def test_evaluate_pro_us_user(evaluator, fixtures_dir):
    assert evaluator.load_configuration(fixtures_dir / "sample-config.yml").success

    result = evaluator.evaluate(UserContext("u1", "US", "Pro"))

    assert result.success is True
    assert result.error is None
    assert list(result.features) == [
        "advanced-analytics",
        "api-access",
        "premium-support",
        "us-compliance-tools",
        "us-payment-gateway",
    ]


def test_evaluate_wire_mapping(evaluator, fixtures_dir):
    evaluator.load_configuration(fixtures_dir / "sample-config.yml")

    result = evaluator.evaluate({"userId": "u2", "region": "EU", "plan": "Basic"})

    assert result.to_dict() == {
        "success": True,
        "features": [
            "basic-dashboard",
            "eu-payment-gateway",
            "gdpr-tools",
            "standard-support",
        ],
    }


@pytest.mark.parametrize(
    "context, error",
    [
        (None, "Missing or null user context"),
        (UserContext("  ", "US", "Pro"), "Invalid or empty userId"),
        (UserContext("u1", "APAC", "Pro"), "Unsupported region"),
        (UserContext("u1", "US", "Enterprise"), "Unsupported plan"),
        (UserContext("", "APAC", "Enterprise"), "Invalid or empty userId"),
    ],
)
def test_input_errors_return_first_message(evaluator, fixtures_dir, context, error):
    evaluator.load_configuration(fixtures_dir / "sample-config.yml")

    result = evaluator.evaluate(context)

    assert result.success is False
    assert result.error == error
    assert result.to_dict() == {"success": False, "error": error}


def test_context_checked_against_loaded_configuration(evaluator, fixtures_dir):
    evaluator.load_configuration(fixtures_dir / "minimal-config.yml")

    assert evaluator.evaluate(UserContext("u1", "US", "Pro")).error == "Unsupported plan"
    assert evaluator.evaluate(UserContext("u1", "EU", "Basic")).error == "Unsupported region"


def test_reload_swaps_rules_and_catalog(evaluator, fixtures_dir):
    evaluator.load_configuration(fixtures_dir / "minimal-config.yml")
    context = UserContext("u1", "US", "Basic")

    assert list(evaluator.evaluate(context).features) == ["basic-feature"]
    assert evaluator.get_available_features() == ["basic-feature"]
    assert evaluator.get_supported_plans() == ["Basic"]
    assert evaluator.get_supported_regions() == ["US"]

    evaluator.load_configuration(fixtures_dir / "sample-config.yml")

    assert list(evaluator.evaluate(context).features) == [
        "basic-dashboard",
        "standard-support",
        "us-compliance-tools",
        "us-payment-gateway",
    ]
    assert len(evaluator.get_available_features()) == 9
    assert evaluator.get_supported_plans() == ["Basic", "Pro"]
    assert evaluator.get_supported_regions() == ["US", "EU"]
    assert evaluator.config_path == fixtures_dir / "sample-config.yml"


def test_failed_reload_keeps_previous_configuration(evaluator, fixtures_dir):
    evaluator.load_configuration(fixtures_dir / "sample-config.yml")
    context = UserContext("u1", "US", "Pro")
    before = evaluator.evaluate(context)
    active = evaluator.configuration

    for name in ("nonexistent-config.yml", "invalid-config.yml", "malformed-config.yml"):
        assert evaluator.load_configuration(fixtures_dir / name).success is False

    assert evaluator.configuration is active
    assert evaluator.evaluate(context) == before
    assert evaluator.config_path == fixtures_dir / "sample-config.yml"


def test_available_features_are_sorted(evaluator, fixtures_dir):
    evaluator.load_configuration(fixtures_dir / "sample-config.yml")

    features = evaluator.get_available_features()

    assert features == sorted(features)


def test_create_evaluator_factory(fixtures_dir):
    assert create_evaluator().is_configured is False
    assert create_evaluator(fixtures_dir / "sample-config.yml").is_configured is True
    assert create_evaluator(fixtures_dir / "invalid-config.yml").is_configured is False


def test_concurrent_evaluations_see_one_whole_configuration(evaluator, sample_document):
    full = parse_configuration(sample_document)
    sample_document["rules"] = [sample_document["rules"][2]]
    region_only = parse_configuration(sample_document)

    context = UserContext("u1", "US", "Pro")
    expected = {
        (
            "advanced-analytics",
            "api-access",
            "premium-support",
            "us-compliance-tools",
            "us-payment-gateway",
        ),
        ("us-compliance-tools", "us-payment-gateway"),
    }

    evaluator.apply_configuration(full)
    stop = threading.Event()
    seen = []
    lock = threading.Lock()

    def worker():
        while True:
            result = evaluator.evaluate(context)
            with lock:
                seen.append(tuple(result.features))
            if stop.is_set():
                break

    workers = [threading.Thread(target=worker) for _ in range(4)]
    for t in workers:
        t.start()
    try:
        for i in range(500):
            evaluator.apply_configuration(region_only if i % 2 == 0 else full)
    finally:
        stop.set()
        for t in workers:
            t.join(timeout=10)

    assert not any(t.is_alive() for t in workers)
    assert seen
    assert set(seen) <= expected
