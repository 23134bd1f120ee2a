"""
API tests for document upload limits
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from core.auth import get_current_user
from core.config import settings
from main import app
from api.v1.endpoints.documents import get_document_service
from services.document_service import DocumentService

USER = {"id": str(uuid4()), "role": "gutachter"}

@pytest.fixture
def document_service():
    blob_store = MagicMock()
    blob_store.put_object = AsyncMock()
    service = DocumentService(AsyncMock(), blob_store=blob_store, case_service=MagicMock())
    app.dependency_overrides[get_current_user] = lambda: USER
    app.dependency_overrides[get_document_service] = lambda: service
    yield service
    app.dependency_overrides.clear()

class TestUploadLimits:

    def test_oversized_upload_is_read_only_up_to_the_limit(self, document_service, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE", 8)

        response = TestClient(app).post(
            "/api/v1/documents",
            data={"fallId": str(uuid4())},
            files={"file": ("gross.pdf", b"x" * 1000, "application/pdf")}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "FILE_TOO_LARGE"
        assert body["details"]["size"] == 9
        document_service.blob_store.put_object.assert_not_awaited()
