import copy
import json
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from resume_reviewer.app.api.dependencies import (
    get_blob_adapter,
    get_converter,
    get_inference_client,
    get_record_store,
)
from resume_reviewer.app.core.config import Settings, get_settings
from resume_reviewer.app.core.security import create_access_token
from resume_reviewer.app.main import create_app
from resume_reviewer.app.pipeline.conversion import ConversionResult, ConvertedImage
from resume_reviewer.app.storage.blobs import BlobAdapter, LocalBlobStorage
from resume_reviewer.app.storage.records import RecordStore

VALID_REPORT = {
    "overallScore": 78,
    "ATS": {
        "score": 82,
        "tips": [
            {"type": "good", "tip": "Standard section headings"},
            {"type": "improve", "tip": "Add more keywords from the posting"},
        ],
    },
    "toneAndStyle": {
        "score": 75,
        "tips": [
            {
                "type": "good",
                "tip": "Confident voice",
                "explanation": "Bullets start with strong action verbs.",
            }
        ],
    },
    "content": {
        "score": 70,
        "tips": [
            {
                "type": "improve",
                "tip": "Quantify impact",
                "explanation": "Few bullets mention measurable outcomes.",
            }
        ],
    },
    "structure": {
        "score": 85,
        "tips": [
            {
                "type": "good",
                "tip": "Clear layout",
                "explanation": "Sections are ordered by relevance.",
            }
        ],
    },
    "skills": {
        "score": 80,
        "tips": [
            {
                "type": "improve",
                "tip": "Group related skills",
                "explanation": "The skills list mixes tools and soft skills.",
            }
        ],
    },
}


class InMemoryKeyValueStore:
    """Dictionary-backed key-value store for tests."""

    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def list_keys(self, prefix: str) -> list[str]:
        return sorted(k for k in self.data if k.startswith(prefix))


@pytest.fixture
def report_data() -> dict:
    """Fixture for a valid feedback report, keyed as in the inference answer."""
    return copy.deepcopy(VALID_REPORT)


@pytest.fixture
def report_json(report_data) -> str:
    return json.dumps(report_data)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Fixture for settings isolated from the environment and the .env file."""
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        BLOB_STORAGE_DIR=str(tmp_path / "blobs"),
        SECRET_KEY="test-secret-key",
        ALGORITHM="HS256",
        ACCESS_TOKEN_EXPIRE_MINUTES=30,
    )


@pytest.fixture(autouse=True)
def mock_settings_lookups(test_settings):
    """Auto-used fixture so code reading settings directly sees the test settings."""
    get_settings.cache_clear()
    with (
        patch(
            "resume_reviewer.app.core.auth.get_settings",
            return_value=test_settings,
        ),
        patch(
            "resume_reviewer.app.middleware.get_settings",
            return_value=test_settings,
        ),
    ):
        yield
    get_settings.cache_clear()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def record_store(kv_store) -> RecordStore:
    return RecordStore(kv_store)


@pytest.fixture
def blob_adapter(tmp_path) -> BlobAdapter:
    return BlobAdapter(LocalBlobStorage(tmp_path / "blobs"))


@pytest.fixture
def converter() -> AsyncMock:
    """Fixture for a converter that always produces a preview image."""
    mock_converter = AsyncMock()
    mock_converter.convert.return_value = ConversionResult(
        file=ConvertedImage(filename="resume.png", content=b"\x89PNG preview")
    )
    return mock_converter


@pytest.fixture
def inference_client(report_json) -> AsyncMock:
    """Fixture for an inference client answering with a valid report."""
    mock_client = AsyncMock()
    mock_client.feedback.return_value = {"message": {"content": report_json}}
    return mock_client


@pytest.fixture
def auth_token(test_settings) -> str:
    return create_access_token(data={"sub": "candidate@example.com"}, settings=test_settings)


@pytest.fixture
def app(
    test_settings,
    record_store,
    blob_adapter,
    converter,
    inference_client,
) -> FastAPI:
    """Fixture to create a new app wired to in-memory collaborators."""
    _app = create_app()
    _app.dependency_overrides[get_settings] = lambda: test_settings
    _app.dependency_overrides[get_record_store] = lambda: record_store
    _app.dependency_overrides[get_blob_adapter] = lambda: blob_adapter
    _app.dependency_overrides[get_converter] = lambda: converter
    _app.dependency_overrides[get_inference_client] = lambda: inference_client
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Fixture to create an unauthenticated test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_client(app: FastAPI, auth_token: str) -> TestClient:
    """Fixture to create a test client holding a valid session cookie."""
    with TestClient(app) as c:
        c.cookies.set("access_token", auth_token)
        yield c
