"""
API tests for case endpoints and the error envelope
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from conftest import make_case, make_document
from core.auth import AuthService, get_current_user
from core.exceptions import ConfirmationSendError, NotFoundError, PermissionError, PrimarySendError
from main import app
from api.v1.endpoints.cases import get_case_service, get_transmission_service
from models.case import CaseStatus

USER = {"id": str(uuid4()), "role": "gutachter"}

@pytest.fixture
def client():
    app.dependency_overrides[get_current_user] = lambda: USER
    yield TestClient(app)
    app.dependency_overrides.clear()

def _transmission_service(**send_kwargs):
    service = MagicMock()
    service.send_case = AsyncMock(**send_kwargs)
    app.dependency_overrides[get_transmission_service] = lambda: service
    return service

class TestSendEndpoint:

    def test_successful_send(self, client):
        case_id = uuid4()
        service = _transmission_service(
            return_value=SimpleNamespace(status=CaseStatus.TRANSMITTED, transmission_count=1)
        )

        response = client.post("/api/v1/cases/send", json={"fallId": str(case_id)})

        assert response.status_code == 200
        body = response.json()
        assert body["erfolg"] is True
        assert body["nachricht"] == "Fall wurde gesendet."
        assert body["fall"] == {"status": "Übermittelt", "uebermittlungen": 1}
        service.send_case.assert_awaited_once_with(case_id, USER)

    def test_missing_case_id(self, client):
        service = _transmission_service()

        response = client.post("/api/v1/cases/send", json={})

        assert response.status_code == 400
        assert response.json()["nachricht"] == "Fall-ID fehlt."
        service.send_case.assert_not_awaited()

    def test_unknown_case(self, client):
        _transmission_service(side_effect=NotFoundError("Fall nicht gefunden", error_code="CASE_NOT_FOUND"))

        response = client.post("/api/v1/cases/send", json={"fallId": str(uuid4())})

        assert response.status_code == 404
        body = response.json()
        assert body["erfolg"] is False
        assert body["error_code"] == "CASE_NOT_FOUND"

    def test_primary_failure(self, client):
        _transmission_service(side_effect=PrimarySendError(
            "Fehler beim Senden der E-Mail an Rechtly.",
            error_code="PRIMARY_SEND_FAILED"
        ))

        response = client.post("/api/v1/cases/send", json={"fallId": str(uuid4())})

        assert response.status_code == 500
        assert response.json()["nachricht"] == "Fehler beim Senden der E-Mail an Rechtly."

    def test_confirmation_failure_reports_primary_sent(self, client):
        error = ConfirmationSendError(
            "Fall wurde an Rechtly gesendet, die Bestätigung an den Gutachter ist fehlgeschlagen.",
            error_code="CONFIRMATION_SEND_FAILED",
            details={"primary_sent": True}
        )
        try:
            raise error from OSError("mailbox full")
        except ConfirmationSendError:
            pass
        _transmission_service(side_effect=error)

        response = client.post("/api/v1/cases/send", json={"fallId": str(uuid4())})

        assert response.status_code == 500
        body = response.json()
        assert body["details"]["primary_sent"] is True
        assert body["fehler"] == "mailbox full"

class TestCaseEndpoints:

    def _case_service(self, case):
        service = MagicMock()
        service.get_case = AsyncMock(return_value=case)
        service.get_case_with_relations = AsyncMock(return_value=case)
        service.set_privacy_accepted = AsyncMock(return_value=case)
        app.dependency_overrides[get_case_service] = lambda: service
        return service

    def test_get_case_uses_portal_field_names(self, client):
        case = make_case()
        case.documents.append(make_document(case_id=case.id, name="foto.jpg"))
        self._case_service(case)

        response = client.get(f"/api/v1/cases/{case.id}")

        assert response.status_code == 200
        fall = response.json()["fall"]
        assert fall["aktenzeichen"] == "GUT-25001-01"
        assert fall["status"] == "Offen"
        assert fall["mandant"]["mandantennummer"] == "MD-000101"
        assert fall["erstelltVon"]["vorname"] == "Max"
        assert [d["name"] for d in fall["dokumente"]] == ["foto.jpg"]
        assert fall["dokumente"][0]["storage_kind"] == "object_key"

    def test_access_denied(self, client):
        case = make_case()
        service = self._case_service(case)
        service.ensure_access = MagicMock(side_effect=PermissionError(
            "Keine Berechtigung für diesen Fall", error_code="CASE_ACCESS_DENIED"
        ))

        response = client.get(f"/api/v1/cases/{case.id}")

        assert response.status_code == 403
        assert response.json()["error_code"] == "CASE_ACCESS_DENIED"

    def test_privacy_patch(self, client):
        case = make_case(privacy_accepted=True)
        service = self._case_service(case)

        response = client.patch(f"/api/v1/cases/{case.id}/datenschutz", json={"datenschutzAngenommen": True})

        assert response.status_code == 200
        assert response.json()["fall"]["datenschutzAngenommen"] is True
        service.set_privacy_accepted.assert_awaited_once_with(case.id, True)

class TestAuthentication:

    def test_routes_require_a_token(self):
        response = TestClient(app).post("/api/v1/cases/send", json={"fallId": str(uuid4())})
        assert response.status_code in (401, 403)
        assert response.json()["erfolg"] is False

    def test_valid_token_is_accepted(self):
        service = _transmission_service(
            return_value=SimpleNamespace(status=CaseStatus.TRANSMITTED, transmission_count=2)
        )
        token = AuthService.create_access_token({"sub": USER["id"], "role": "admin"})

        try:
            response = TestClient(app).post(
                "/api/v1/cases/send",
                json={"fallId": str(uuid4())},
                headers={"Authorization": f"Bearer {token}"}
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert service.send_case.await_args.args[1]["id"] == USER["id"]
        assert service.send_case.await_args.args[1]["role"] == "admin"

    def test_health_is_public(self):
        response = TestClient(app).get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
