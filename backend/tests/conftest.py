# backend/tests/conftest.py
"""Shared fixtures for the backend test-suite."""


import copy
import pathlib
import sys

import pytest

# Ensure backend/ is on sys.path so that `app`, `services`, ... resolve
BACKEND_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from models.configuration import Configuration  # noqa: E402


FIXTURES_DIR = pathlib.Path(__file__).resolve().parent / "fixtures"


SAMPLE_DOCUMENT = {
    "supportedPlans": ["Basic", "Pro"],
    "supportedRegions": ["US", "EU"],
    "features": [
        {"id": "advanced-analytics", "name": "Advanced Analytics"},
        {"id": "premium-support", "name": "Premium Support"},
        {"id": "api-access", "name": "API Access"},
        {"id": "basic-dashboard", "name": "Basic Dashboard"},
        {"id": "standard-support", "name": "Standard Support"},
        {"id": "us-payment-gateway", "name": "US Payment Gateway"},
        {"id": "us-compliance-tools", "name": "US Compliance Tools"},
        {"id": "gdpr-tools", "name": "GDPR Tools"},
        {"id": "eu-payment-gateway", "name": "EU Payment Gateway"},
    ],
    "rules": [
        {
            "id": "pro-plan-features",
            "conditions": [
                {"attribute": "plan", "operator": "equals", "value": "Pro"}
            ],
            "features": ["advanced-analytics", "premium-support", "api-access"],
        },
        {
            "id": "basic-plan-features",
            "conditions": [
                {"attribute": "plan", "operator": "equals", "value": "Basic"}
            ],
            "features": ["basic-dashboard", "standard-support"],
        },
        {
            "id": "us-region-features",
            "conditions": [
                {"attribute": "region", "operator": "equals", "value": "US"}
            ],
            "features": ["us-payment-gateway", "us-compliance-tools"],
        },
        {
            "id": "eu-region-features",
            "conditions": [
                {"attribute": "region", "operator": "equals", "value": "EU"}
            ],
            "features": ["gdpr-tools", "eu-payment-gateway"],
        },
    ],
}


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def sample_document():
    """A fresh, mutable copy of the canonical four-rule document."""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def sample_configuration(sample_document):
    return Configuration.from_document(sample_document)
