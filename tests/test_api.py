"""
API tests for the rule engine endpoints.

Every endpoint is stateless except the knowledge store, which is swapped
for an empty one per test via fresh_knowledge_service.
"""

from io import BytesIO

import pandas as pd
import pytest


# ===================
# PAYLOADS
# ===================

@pytest.fixture
def parts_payload(sample_parts) -> list[dict]:
    return [p.model_dump(mode="json") for p in sample_parts]


@pytest.fixture
def rules_payload(sample_rules) -> list[dict]:
    return [r.model_dump(mode="json") for r in sample_rules]


# ===================
# APP
# ===================

class TestAppEndpoints:
    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_lists_endpoints(self, test_client):
        data = test_client.get("/").json()

        assert data["endpoints"]["rules"] == "/api/rules"
        assert data["endpoints"]["matching"] == "/api/matching"


# ===================
# RULES
# ===================

class TestRuleEndpoints:
    def test_parse(self, test_client):
        response = test_client.post("/api/rules/parse", json={"raw": "(CAB/CAN) STD [TT BT]"})

        assert response.status_code == 200
        data = response.json()
        assert data["or_groups"] == [["CAB", "CAN"]]
        assert data["include_terms"] == ["STD"]
        assert data["exclude_terms"] == ["TT", "BT"]

    def test_parse_missing_raw_is_empty(self, test_client):
        data = test_client.post("/api/rules/parse", json={}).json()

        assert data["include_terms"] == []
        assert data["raw_expression"] == ""

    def test_serialize(self, test_client):
        logic = {"include_terms": ["STD"], "or_groups": [["CAB", "CAN"]], "exclude_terms": ["TT"]}

        response = test_client.post("/api/rules/serialize", json={"logic": logic})

        assert response.json() == {"expression": "STD (CAB/CAN) [TT]"}

    def test_generate(self, test_client, parts_payload):
        response = test_client.post(
            "/api/rules/generate",
            json={"parts": parts_payload, "logic_by_part": {"eng-turbo": "(CAB/CAN)"}},
        )

        data = response.json()
        targets = {r["target_part_id"] for r in data["rules"]}
        assert response.status_code == 200
        assert data["created"] == 3
        assert targets == {"cab-ac", "eng-turbo", "light-kit"}

    def test_promote(self, test_client, parts_payload, rules_payload):
        match = {"category": "Climate", "selection": "Cooling Package", "matched_part_number": "AC-220"}

        response = test_client.post(
            "/api/rules/promote",
            json={"match": match, "parts": parts_payload, "rules": rules_payload},
        )

        assert response.status_code == 200
        assert response.json()["target_part_id"] == "cab-ac"
        assert response.json()["logic"]["include_terms"] == ["CLIMATE", "COOLING", "PACKAGE"]

    def test_promote_unknown_part_number(self, test_client, parts_payload):
        match = {"category": "Paint", "selection": "Blue", "matched_part_number": "NOPE"}

        response = test_client.post("/api/rules/promote", json={"match": match, "parts": parts_payload})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PART_NOT_FOUND"

    def test_promote_without_part_number(self, test_client, parts_payload):
        match = {"category": "Paint", "selection": "Blue"}

        response = test_client.post("/api/rules/promote", json={"match": match, "parts": parts_payload})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "RULE_PROMOTION_FAILED"


# ===================
# CONFIGURATION
# ===================

class TestConfigurationEndpoints:
    def test_resolve(self, test_client, parts_payload, rules_payload):
        response = test_client.post(
            "/api/configuration/resolve",
            json={"parts": parts_payload, "rules": rules_payload, "confirmed_ids": []},
        )

        data = response.json()
        assert data["implied_ids"] == ["cab-ac", "light-kit"]
        assert data["converged"] is True

    def test_resolve_example_from_docs(self, test_client):
        payload = {
            "parts": [
                {"id": "base1", "functional_code": 0, "remarks": "STD CAB"},
                {"id": "opt1", "functional_code": 1, "ref_des": "HYD"},
            ],
            "rules": [{
                "id": "r1",
                "target_part_id": "opt1",
                "logic": {"include_terms": ["CAB"], "exclude_terms": [], "or_groups": []},
                "is_active": True,
            }],
        }

        data = test_client.post("/api/configuration/resolve", json=payload).json()

        assert data["implied_ids"] == ["opt1"]

    def test_resolve_rejects_unknown_functional_code(self, test_client):
        payload = {"parts": [{"id": "x", "functional_code": 5}], "rules": []}

        response = test_client.post("/api/configuration/resolve", json=payload)

        assert response.status_code == 422

    def test_toggle(self, test_client, parts_payload):
        response = test_client.post(
            "/api/configuration/toggle",
            json={"parts": parts_payload, "selected_ids": ["eng-turbo", "cab-ac"], "part_id": "eng-std"},
        )

        assert response.json()["selected_ids"] == ["cab-ac", "eng-std"]

    def test_validate_computes_suggestions(self, test_client, parts_payload, rules_payload):
        response = test_client.post(
            "/api/configuration/validate",
            json={"parts": parts_payload, "rules": rules_payload, "selected_ids": ["eng-std"]},
        )

        data = response.json()
        assert data["missing_mandatory"] == 0
        assert data["pending_confirmation"] == 2
        assert data["is_valid"] is False

    def test_validate_with_given_suggestions(self, test_client, parts_payload):
        response = test_client.post(
            "/api/configuration/validate",
            json={"parts": parts_payload, "selected_ids": ["eng-std"], "implied_ids": []},
        )

        assert response.json()["is_valid"] is True

    def test_manifest(self, test_client, parts_payload):
        response = test_client.post(
            "/api/configuration/manifest",
            json={"parts": parts_payload, "selected_ids": ["eng-turbo", "manual"]},
        )

        data = response.json()
        assert data["total"] == 2
        assert [p["id"] for p in data["parts"]] == ["base-frame", "eng-turbo"]


# ===================
# MATCHING
# ===================

class TestMatchingEndpoints:
    def test_match(self, test_client, parts_payload):
        response = test_client.post(
            "/api/matching/match",
            json={"parts": parts_payload, "query": {"category": "ENGINE", "selection": "TURBO DIESEL 350HP"}},
        )

        data = response.json()
        assert data["matched_part_id"] == "eng-turbo"
        assert data["confidence_level"] == "AUTO_VERIFIED"

    def test_match_no_overlap(self, test_client, parts_payload):
        response = test_client.post(
            "/api/matching/match",
            json={"parts": parts_payload, "query": {"category": "PAINT", "selection": "METALLIC BLUE"}},
        )

        data = response.json()
        assert data["matched_part_id"] is None
        assert data["confidence_score"] == 0
        assert data["confidence_level"] == "UNCERTAIN"

    def test_match_bulk(self, test_client, parts_payload):
        queries = [
            {"category": "ENGINE", "selection": "TURBO DIESEL 350HP"},
            {"category": "Climate", "selection": "Cooling Package"},
        ]
        knowledge = {"PC200": [{"category": "Climate", "selection": "Cooling Package", "part_number": "AC-220"}]}

        response = test_client.post(
            "/api/matching/match-bulk",
            json={"parts": parts_payload, "queries": queries, "knowledge": knowledge, "model_name": "PC200"},
        )

        assert [r["matched_part_id"] for r in response.json()] == ["eng-turbo", "cab-ac"]

    def test_reconcile_uses_stored_knowledge(self, test_client, parts_payload, fresh_knowledge_service):
        test_client.post(
            "/api/knowledge/commit",
            json={
                "model_name": "PC200",
                "mappings": [{"category": "Climate", "selection": "Cooling Package", "part_number": "AC-220"}],
            },
        )
        pages = [{
            "model_name": "PC200",
            "options": [
                {"category": "Climate", "selection": "Cooling Package"},
                {"category": "PAINT", "selection": "METALLIC BLUE"},
            ],
        }]

        response = test_client.post("/api/matching/reconcile", json={"parts": parts_payload, "pages": pages})

        data = response.json()
        assert data["model_name"] == "PC200"
        assert data["auto_selected_ids"] == ["cab-ac"]
        assert data["results"][0]["source"] == "LEARNED"

    def test_reconcile_uses_stored_baseline(self, test_client, parts_payload, fresh_knowledge_service):
        test_client.post(
            "/api/knowledge/baseline",
            json={"PC300": [{"category": "Climate", "selection": "Cooling Package", "part_number": "AC-220"}]},
        )
        pages = [{"model_name": "PC200", "options": [{"category": "Climate", "selection": "Cooling Package"}]}]

        response = test_client.post("/api/matching/reconcile", json={"parts": parts_payload, "pages": pages})

        data = response.json()
        assert data["auto_selected_ids"] == ["cab-ac"]
        assert data["results"][0]["source"] == "BASELINE"

    def test_match_with_baseline(self, test_client, parts_payload):
        baseline = {"PC300": [{"category": "A/C", "selection": "NO", "part_number": "AC-220"}]}

        response = test_client.post(
            "/api/matching/match",
            json={"parts": parts_payload, "query": {"category": "A/C", "selection": "NO"}, "baseline": baseline},
        )

        assert response.json()["matched_part_id"] == "cab-ac"

    def test_reconcile_without_stored_knowledge(self, test_client, parts_payload, fresh_knowledge_service):
        pages = [{"model_name": "PC200", "options": [{"category": "Climate", "selection": "Cooling Package"}]}]

        response = test_client.post(
            "/api/matching/reconcile",
            json={"parts": parts_payload, "pages": pages, "use_stored_knowledge": False},
        )

        assert response.json()["auto_selected_ids"] == []


# ===================
# KNOWLEDGE
# ===================

class TestKnowledgeEndpoints:
    def test_commit_and_read(self, test_client, fresh_knowledge_service):
        response = test_client.post(
            "/api/knowledge/commit",
            json={
                "model_name": "PC200",
                "mappings": [{"category": "Engine", "selection": "Turbo", "part_number": "x9-350"}],
            },
        )

        assert response.json() == {"model_name": "PC200", "committed": 1, "total_entries": 1}
        table = test_client.get("/api/knowledge").json()
        assert table["PC200"][0]["part_number"] == "X9-350"
        assert test_client.get("/api/knowledge", params={"model_name": "PC300"}).json() == {"PC300": []}

    def test_commit_generic_is_ignored(self, test_client, fresh_knowledge_service):
        response = test_client.post(
            "/api/knowledge/commit",
            json={
                "model_name": "Generic",
                "mappings": [{"category": "Engine", "selection": "Turbo", "part_number": "X9-350"}],
            },
        )

        assert response.json()["committed"] == 0
        assert test_client.get("/api/knowledge").json() == {}

    def test_export_then_import(self, test_client, fresh_knowledge_service):
        test_client.post(
            "/api/knowledge/commit",
            json={
                "model_name": "PC200",
                "mappings": [{"category": "Engine", "selection": "Turbo", "part_number": "X9-350"}],
            },
        )
        exported = test_client.get("/api/knowledge/export").json()
        fresh_knowledge_service.clear()

        response = test_client.post("/api/knowledge/import", json=exported)

        assert exported["version"] == "2.0"
        assert response.json()["imported_entries"] == 1
        assert test_client.get("/api/knowledge").json()["PC200"][0]["selection"] == "Turbo"

    def test_import_invalid_document(self, test_client, fresh_knowledge_service):
        response = test_client.post("/api/knowledge/import", json={"knowledge_base": {"PC200": [{}]}})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "KNOWLEDGE_IMPORT_ERROR"

    def test_import_non_object(self, test_client, fresh_knowledge_service):
        response = test_client.post("/api/knowledge/import", json=[1, 2, 3])

        assert response.status_code == 422

    def test_export_single_model(self, test_client, fresh_knowledge_service):
        for model_name in ("PC200", "PC300"):
            test_client.post(
                "/api/knowledge/commit",
                json={
                    "model_name": model_name,
                    "mappings": [{"category": "Engine", "selection": "Turbo", "part_number": "X9-350"}],
                },
            )

        data = test_client.get("/api/knowledge/export", params={"model_name": "PC300"}).json()

        assert data["model_name"] == "PC300"
        assert list(data["knowledge_base"]) == ["PC300"]

    def test_baseline_load_and_read(self, test_client, fresh_knowledge_service):
        baseline = {"PC300": [{"category": "Climate", "selection": "Cooling Package", "part_number": "AC-220"}]}

        response = test_client.post("/api/knowledge/baseline", json=baseline)

        assert response.json() == {"models": 1, "entries": 1}
        assert test_client.get("/api/knowledge/baseline").json()["PC300"][0]["part_number"] == "AC-220"
        assert test_client.get("/api/knowledge").json() == {}

    def test_baseline_invalid_document(self, test_client, fresh_knowledge_service):
        response = test_client.post("/api/knowledge/baseline", json={"PC300": [{"category": "A"}]})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "KNOWLEDGE_IMPORT_ERROR"


# ===================
# CATALOG
# ===================

def create_catalog_upload(rows: list[dict], columns: list[str]) -> BytesIO:
    """Helper to create an in-memory catalog workbook."""
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        pd.DataFrame(rows, columns=columns).to_excel(writer, index=False)
    output.seek(0)
    return output


class TestCatalogEndpoints:
    XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    def test_import_with_rules(self, test_client):
        rows = [
            {"Part_Number": "FR-100", "Name": "Frame", "Remarks": "STD CAB", "F_Code": 0},
            {"Part_Number": "AC-220", "Name": "Air Con", "Remarks": "CAB AC", "F_Code": 1, "Ref_des": "CAB"},
            {"Part_Number": "LT-1", "Name": "Light", "F_Code": 7, "Logic": "AC"},
        ]
        upload = create_catalog_upload(rows, ["Part_Number", "Name", "Remarks", "F_Code", "Ref_des", "Logic"])

        response = test_client.post(
            "/api/catalog/import",
            files={"file": ("parts.xlsx", upload, self.XLSX)},
        )

        data = response.json()
        assert response.status_code == 200
        assert len(data["parts"]) == 3
        assert data["rules_created"] == 1
        assert data["rules"][0]["logic"]["include_terms"] == ["CAB", "AC"]
        assert data["errors"][0]["field"] == "F_Code"

    def test_import_without_rules(self, test_client):
        rows = [{"Part_Number": "AC-220", "Remarks": "CAB", "F_Code": 1}]
        upload = create_catalog_upload(rows, ["Part_Number", "Remarks", "F_Code"])

        response = test_client.post(
            "/api/catalog/import",
            params={"generate_rules": "false"},
            files={"file": ("parts.xlsx", upload, self.XLSX)},
        )

        assert response.json()["rules"] == []

    def test_import_missing_column(self, test_client):
        upload = create_catalog_upload([{"Name": "Frame"}], ["Name"])

        response = test_client.post(
            "/api/catalog/import",
            files={"file": ("parts.xlsx", upload, self.XLSX)},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "CATALOG_MISSING_COLUMNS"
