"""
Shared test fixtures.

Catalog snapshots are plain lists of Part records, so fixtures build them
directly; no storage needs to be mocked.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest

from models.part import Part, FunctionalCode
from models.rule import Rule, RuleLogic
from models.knowledge import KnowledgeEntry


# ===================
# CATALOG FIXTURES
# ===================

@pytest.fixture
def sample_parts() -> list[Part]:
    """
    Small excavator catalog.

    base-frame   baseline, remarks mention a standard cab
    cab-ac       optional air conditioning unit (group CAB)
    eng-std      mandatory standard engine (group ENG)
    eng-turbo    mandatory turbo engine (group ENG)
    light-kit    optional work lights (group LIGHT)
    manual       reference-only operator manual
    """
    return [
        Part(
            id="base-frame",
            part_number="FR-100",
            name="Main Frame",
            remarks="STD CAB",
            functional_code=FunctionalCode.BASELINE,
            select_preference=10,
        ),
        Part(
            id="cab-ac",
            part_number="AC-220",
            name="Air Conditioning Unit",
            remarks="CAB AC",
            ref_des="CAB",
            functional_code=FunctionalCode.OPTIONAL,
            select_preference=30,
        ),
        Part(
            id="eng-std",
            part_number="EN-300",
            name="Standard Diesel Engine",
            ref_des="ENG",
            functional_code=FunctionalCode.MANDATORY,
            select_preference=20,
        ),
        Part(
            id="eng-turbo",
            part_number="X9-350",
            name="Turbo Diesel 350HP Engine",
            ref_des="ENG",
            functional_code=FunctionalCode.MANDATORY,
            select_preference=21,
        ),
        Part(
            id="light-kit",
            part_number="LT-040",
            name="LED Work Light Kit",
            remarks="LIGHT",
            ref_des="LIGHT",
            functional_code=FunctionalCode.OPTIONAL,
            select_preference=40,
        ),
        Part(
            id="manual",
            part_number="DOC-001",
            name="Operator Manual",
            functional_code=FunctionalCode.REFERENCE,
            select_preference=5,
        ),
    ]


@pytest.fixture
def sample_rules() -> list[Rule]:
    """Rules over sample_parts: AC follows the cab, lights follow AC."""
    return [
        Rule(
            id="rule-ac",
            target_part_id="cab-ac",
            logic=RuleLogic(include_terms=["CAB"], raw_expression="CAB"),
        ),
        Rule(
            id="rule-light",
            target_part_id="light-kit",
            logic=RuleLogic(include_terms=["AC"], raw_expression="AC"),
        ),
    ]


@pytest.fixture
def sample_knowledge() -> dict[str, list[KnowledgeEntry]]:
    """Knowledge table with one confirmed mapping for model PC200."""
    return {
        "PC200": [
            KnowledgeEntry(
                category="Climate",
                selection="Cooling Package",
                part_number="AC-220",
                confirmed_count=3,
            ),
        ],
    }


# ===================
# API CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def fresh_knowledge_service():
    """
    Replace the knowledge singleton with an empty store for one test.

    Usage:
        def test_commit(test_client, fresh_knowledge_service):
            ...
    """
    import services.knowledge_service as knowledge_module
    from services.knowledge_service import KnowledgeService

    previous = knowledge_module._knowledge_service
    knowledge_module._knowledge_service = KnowledgeService()
    yield knowledge_module._knowledge_service
    knowledge_module._knowledge_service = previous
