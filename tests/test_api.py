from __future__ import annotations

from fastapi.testclient import TestClient

from miniform.app import create_app

from conftest import ADMIN, FakeGenerator, contact_form_payload, make_field, make_section


def create_form(client, payload=None):
    response = client.post("/api/forms", json=payload or contact_form_payload(), auth=ADMIN)
    assert response.status_code == 201, response.text
    return response.json()


class TestAuth:
    def test_admin_routes_require_auth(self, client):
        response = client.get("/api/forms")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert response.headers["WWW-Authenticate"] == 'Basic realm="Admin"'

    def test_wrong_basic_credentials(self, client):
        assert client.get("/api/forms", auth=("admin", "nope")).status_code == 401

    def test_session_login_and_logout(self, client):
        assert client.post("/admin/login", json={"username": "admin", "password": "bad"}).status_code == 401
        response = client.post("/admin/login", json={"username": "admin", "password": "s3cret"})
        assert response.status_code == 200
        assert "httponly" in response.headers["set-cookie"].lower()
        assert client.get("/admin/session").json() == {"authenticated": True}
        assert client.get("/api/forms").status_code == 200

        client.post("/admin/logout")
        assert client.get("/admin/session").json() == {"authenticated": False}
        assert client.get("/api/forms").status_code == 401

    def test_forged_cookie_is_ignored(self, client):
        client.cookies.set("miniform_session", "eyJhZG1pbiI6IHRydWV9")
        assert client.get("/api/forms").status_code == 401

    def test_login_shape_error(self, client):
        response = client.post("/admin/login", json={"username": "admin"})
        assert response.status_code == 400

    def test_auth_disabled(self, settings, generator):
        settings.auth_mode = "none"
        with TestClient(create_app(settings, generator=generator)) as open_client:
            assert open_client.get("/api/forms").status_code == 200


class TestForms:
    def test_create_and_get(self, client):
        created = create_form(client)
        assert created["title"] == "Contact us"
        assert created["submissionCount"] == 0
        assert created["publicId"] != created["id"]
        assert created["publicUrl"] == f"/public/{created['publicId']}"
        assert [s["name"] for s in created["sections"]] == ["About you", "Message"]

        fetched = client.get(f"/api/forms/{created['id']}", auth=ADMIN).json()
        assert fetched["sections"] == created["sections"]

    def test_list_forms(self, client):
        first = create_form(client)
        listing = client.get("/api/forms", auth=ADMIN).json()["forms"]
        assert [f["id"] for f in listing] == [first["id"]]
        assert listing[0]["submissionCount"] == 0

    def test_create_rejects_too_many_sections(self, client):
        payload = contact_form_payload()
        payload["sections"].append(make_section("s3", "Extra", [make_field("f9", "X")]))
        response = client.post("/api/forms", json=payload, auth=ADMIN)
        assert response.status_code == 422
        assert response.json() == {
            "error": "Validation failed",
            "details": ["Form cannot have more than 2 sections"],
        }
        assert client.get("/api/forms", auth=ADMIN).json()["forms"] == []

    def test_create_rejects_duplicate_ids(self, client):
        payload = contact_form_payload()
        payload["sections"][0]["fields"][1]["id"] = "f1"
        response = client.post("/api/forms", json=payload, auth=ADMIN)
        assert response.status_code == 422
        assert response.json()["details"] == ['Field id "f1" is used multiple times']

    def test_create_rejects_field_id_shared_across_sections(self, client):
        payload = {
            "title": "Signup",
            "sections": [
                make_section("s1", "Person", [make_field("f1", "Name", required=True)]),
                make_section("s2", "Details", [make_field("f1", "Age", "number", True)]),
            ],
        }
        response = client.post("/api/forms", json=payload, auth=ADMIN)
        assert response.status_code == 422
        assert response.json()["details"] == ['Field id "f1" is used multiple times']
        assert client.get("/api/forms", auth=ADMIN).json()["forms"] == []

    def test_shape_errors_before_constraints(self, client):
        response = client.post("/api/forms", json={"title": "T", "sections": "nope"}, auth=ADMIN)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request data"
        assert body["details"] == [{"path": "sections", "message": "'nope' is not of type 'array'"}]

    def test_invalid_json_body(self, client):
        response = client.post(
            "/api/forms", content=b"{not json", headers={"Content-Type": "application/json"}, auth=ADMIN
        )
        assert response.status_code == 400
        assert response.json()["details"] == [{"path": "$", "message": "Request body must be valid JSON"}]

    def test_update_replaces_structure(self, client):
        created = create_form(client)
        payload = {"title": "Renamed", "sections": [make_section("s9", "Only", [make_field("g1", "Color")])]}
        response = client.put(f"/api/forms/{created['id']}", json=payload, auth=ADMIN)
        assert response.status_code == 200
        updated = response.json()
        assert updated["title"] == "Renamed"
        assert updated["publicId"] == created["publicId"]
        assert updated["createdAt"] == created["createdAt"]
        assert [s["id"] for s in updated["sections"]] == ["s9"]

    def test_update_rejection_keeps_stored_form(self, client):
        created = create_form(client)
        payload = contact_form_payload()
        payload["sections"][1]["fields"] = [make_field(f"x{i}", f"X{i}") for i in range(4)]
        response = client.put(f"/api/forms/{created['id']}", json=payload, auth=ADMIN)
        assert response.status_code == 422
        assert response.json()["details"] == ['Section "Message" cannot have more than 3 fields']
        fetched = client.get(f"/api/forms/{created['id']}", auth=ADMIN).json()
        assert fetched["sections"] == created["sections"]

    def test_unknown_form(self, client):
        assert client.get("/api/forms/missing", auth=ADMIN).status_code == 404
        response = client.put("/api/forms/missing", json=contact_form_payload(), auth=ADMIN)
        assert response.status_code == 404
        assert response.json() == {"error": "Form not found"}


class TestDrafts:
    def test_new_draft(self, client):
        response = client.get("/api/forms/draft", auth=ADMIN)
        assert response.status_code == 200
        body = response.json()
        assert body["form"]["title"] == "Untitled Form"
        assert [s["name"] for s in body["form"]["sections"]] == ["Section 1"]
        assert body["valid"] is False
        assert body["errors"] == ["Form title is required"]

    def test_drafts_require_auth(self, client):
        assert client.get("/api/forms/draft").status_code == 401
        assert client.post("/api/forms/draft/check", json=contact_form_payload()).status_code == 401

    def test_check_valid_draft(self, client):
        response = client.post("/api/forms/draft/check", json=contact_form_payload(), auth=ADMIN)
        assert response.status_code == 200
        assert response.json()["valid"] is True
        assert response.json()["errors"] == []
        assert client.get("/api/forms", auth=ADMIN).json()["forms"] == []

    def test_check_reports_authoring_rules(self, client):
        payload = contact_form_payload()
        payload["sections"][1]["name"] = "About you"
        payload["sections"][1]["fields"][0]["id"] = "f1"
        body = client.post("/api/forms/draft/check", json=payload, auth=ADMIN).json()
        assert body["valid"] is False
        assert body["errors"] == [
            'Section name "About you" is used multiple times',
            'Field id "f1" is used multiple times',
        ]

    def test_check_shape_error(self, client):
        response = client.post("/api/forms/draft/check", json={"title": "T"}, auth=ADMIN)
        assert response.status_code == 400

    def test_edit_sequence(self, client):
        draft = client.get("/api/forms/draft", auth=ADMIN).json()["form"]
        section_id = draft["sections"][0]["id"]

        body = client.post(
            "/api/forms/draft/edit",
            json={"form": draft, "edit": {"op": "setTitle", "title": "Feedback"}},
            auth=ADMIN,
        ).json()
        assert body["valid"] is True
        assert body["form"]["title"] == "Feedback"

        body = client.post(
            "/api/forms/draft/edit",
            json={"form": body["form"], "edit": {"op": "addField", "sectionId": section_id}},
            auth=ADMIN,
        ).json()
        assert [f["label"] for f in body["form"]["sections"][0]["fields"]] == ["Field 1", "Field 2"]

        created = create_form(client, body["form"])
        assert created["title"] == "Feedback"

    def test_edit_rejected(self, client):
        response = client.post(
            "/api/forms/draft/edit",
            json={"form": contact_form_payload(), "edit": {"op": "addSection"}},
            auth=ADMIN,
        )
        assert response.status_code == 422
        assert response.json() == {"error": "Edit rejected", "details": ["Maximum of 2 sections allowed"]}

    def test_edit_unknown_field_type(self, client):
        edit = {"op": "updateField", "sectionId": "s1", "fieldId": "f1", "changes": {"type": "date"}}
        response = client.post(
            "/api/forms/draft/edit", json={"form": contact_form_payload(), "edit": edit}, auth=ADMIN
        )
        assert response.status_code == 422
        assert response.json()["details"] == ["Unknown field type: date"]

    def test_edit_shape_error(self, client):
        response = client.post(
            "/api/forms/draft/edit",
            json={"form": contact_form_payload(), "edit": {"op": "removeField", "sectionId": "s1"}},
            auth=ADMIN,
        )
        assert response.status_code == 400
        assert response.json()["details"] == [{"path": "edit", "message": "'fieldId' is a required property"}]


class TestPublicSubmissions:
    def test_fetch_public_form(self, client):
        created = create_form(client)
        response = client.get(f"/api/public/forms/{created['publicId']}")
        assert response.status_code == 200
        assert response.json()["title"] == "Contact us"
        assert client.get(f"/api/public/forms/{created['id']}").status_code == 404

    def test_submit_and_count(self, client):
        created = create_form(client)
        url = f"/api/public/forms/{created['publicId']}/submissions"
        response = client.post(url, json={"payload": {"f1": "Ann", "f2": "042"}})
        assert response.status_code == 201
        assert response.json()["message"] == "Form submitted successfully"

        listing = client.get(f"/api/forms/{created['id']}/submissions", auth=ADMIN).json()
        assert listing["count"] == 1
        assert listing["submissions"][0]["payload"] == {"f1": "Ann", "f2": "042"}
        assert client.get(f"/api/forms/{created['id']}", auth=ADMIN).json()["submissionCount"] == 1

    def test_missing_required_field(self, client):
        created = create_form(client)
        response = client.post(f"/api/public/forms/{created['publicId']}/submissions", json={"payload": {}})
        assert response.status_code == 422
        assert response.json()["details"] == ["Name is required"]

    def test_all_violations_reported(self, client):
        created = create_form(client)
        response = client.post(
            f"/api/public/forms/{created['publicId']}/submissions",
            json={"payload": {"f2": "abc", "zz": "x"}},
        )
        assert response.json()["details"] == ["Unknown field: zz", "Name is required", "Age must be a valid number"]
        listing = client.get(f"/api/forms/{created['id']}/submissions", auth=ADMIN).json()
        assert listing["count"] == 0

    def test_submission_uses_live_schema(self, client):
        created = create_form(client)
        payload = {"title": "T", "sections": [make_section("s1", "A", [make_field("f2", "Age", "number", True)])]}
        client.put(f"/api/forms/{created['id']}", json=payload, auth=ADMIN)
        response = client.post(f"/api/public/forms/{created['publicId']}/submissions", json={"payload": {"f1": "Ann"}})
        assert response.json()["details"] == ["Unknown field: f1", "Age is required"]

    def test_submission_shape_error(self, client):
        created = create_form(client)
        response = client.post(f"/api/public/forms/{created['publicId']}/submissions", json={"payload": {"f1": True}})
        assert response.status_code == 400

    def test_submit_to_unknown_form(self, client):
        assert client.post("/api/public/forms/nope/submissions", json={"payload": {}}).status_code == 404


class TestGenerate:
    def test_generated_draft_is_truncated(self, settings):
        raw = {
            "title": "Event signup",
            "sections": [
                make_section(f"s{s}", f"Part {s}", [make_field(f"s{s}f{f}", f"Q{f}") for f in range(10)])
                for s in range(5)
            ],
        }
        generator = FakeGenerator(result=raw)
        with TestClient(create_app(settings, generator=generator)) as client:
            response = client.post("/api/ai/generate-form", json={"description": "event signup"}, auth=ADMIN)
        assert response.status_code == 200
        body = response.json()
        assert [len(s["fields"]) for s in body["sections"]] == [3, 3]
        assert generator.descriptions == ["event signup"]

    def test_generated_output_is_validated(self, settings):
        generator = FakeGenerator(result={"title": "X", "sections": [{"id": "1", "name": "A", "fields": "bad"}]})
        with TestClient(create_app(settings, generator=generator)) as client:
            response = client.post("/api/ai/generate-form", json={"description": "x"}, auth=ADMIN)
        assert response.status_code == 400

    def test_generator_failure(self, client):
        response = client.post("/api/ai/generate-form", json={"description": "x"}, auth=ADMIN)
        assert response.status_code == 502
        assert response.json() == {"error": "Failed to generate form with AI"}

    def test_generate_requires_description(self, client):
        assert client.post("/api/ai/generate-form", json={}, auth=ADMIN).status_code == 400


def test_json_backend(settings, generator):
    settings.storage_backend = "json"
    with TestClient(create_app(settings, generator=generator)) as client:
        created = create_form(client)
        url = f"/api/public/forms/{created['publicId']}/submissions"
        assert client.post(url, json={"f1": "Ann"}).status_code == 201
        fetched = client.get(f"/api/forms/{created['id']}", auth=ADMIN).json()
        assert fetched["submissionCount"] == 1
        assert settings.json_path.exists()


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}

