"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- An in-memory document store
- Mock media, text generation and plant identification clients
- Sample tree documents and AI responses
- Services wired to the fakes
- FastAPI test client with dependency overrides
"""
import copy
import random
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.api.dependencies import (
    get_document_store,
    get_identity_client,
    get_mail_client,
    get_media_store,
    get_plant_identifier,
    get_text_generator,
)
from app.domain.models import TreeSuggestion
from app.infrastructure.identity_client import IdentityClient
from app.infrastructure.mail_client import MailClient
from app.infrastructure.media_store_client import MediaStoreClient
from app.infrastructure.plant_identification_client import PlantIdentificationClient
from app.infrastructure.text_generation_client import TextGenerationClient
from app.services.application.listing_service import ListingService
from app.services.application.tree_service import TreeService
from app.services.application.volunteer_service import VolunteerService


SAMPLE_AI_RESPONSE = """Detailed Description: A tall tree.
Medicinal Benefits: Bark extract treats fever.
Native to India: Yes, widely found.
Scientific Classification:
- Kingdom: Plantae
- Genus: Ficus
Common Tree Category: Shade Trees"""

MEDIA_URL_PREFIX = "https://res.cloudinary.com/demo/image/upload/v1700000000/treeqr/"


# ============================================================
# In-memory Document Store
# ============================================================

class InMemoryDocumentStore:
    """
    Path-addressed dict store with the same coroutine interface as
    DocumentStoreClient.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = copy.deepcopy(data) if data else {}
        self.writes = []

    @staticmethod
    def _parts(path: str):
        return [part for part in path.strip("/").split("/") if part]

    async def get(self, path: str) -> Any:
        node: Any = self.data
        for part in self._parts(path):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return copy.deepcopy(node)

    def _put(self, path: str, value: Any) -> None:
        parts = self._parts(path)
        node = self.data
        for part in parts[:-1]:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        if value is None:
            node.pop(parts[-1], None)
        else:
            node[parts[-1]] = copy.deepcopy(value)

    async def set(self, path: str, value: Any) -> None:
        self.writes.append(("set", path, copy.deepcopy(value)))
        self._put(path, value)

    async def update(self, path: str, partial: Dict[str, Any]) -> None:
        self.writes.append(("update", path, copy.deepcopy(partial)))
        for key, value in partial.items():
            self._put(f"{path}/{key}", value)

    async def delete(self, path: str) -> None:
        self.writes.append(("delete", path, None))
        self._put(path, None)

    async def query_equal(self, path: str, child: str, value: Any) -> Dict[str, Any]:
        node = await self.get(path) or {}
        return {
            key: doc for key, doc in node.items()
            if isinstance(doc, dict) and doc.get(child) == value
        }

    async def close(self):
        pass


# ============================================================
# Sample Data Fixtures
# ============================================================

def make_tree(uid: str, **fields) -> Dict[str, Any]:
    """Stored tree document with sensible defaults."""
    document = {
        "uid": uid,
        "Name": "Neem",
        "botanical": "Azadirachta indica",
        "Published": False,
        "QR": True,
        "Saved": True,
        "volunteerName": "volunteer@example.com",
        "timestamp": "2024-05-01T10:20:30+05:30",
    }
    document.update(fields)
    return document


def make_images(count: int):
    return [
        {"url": f"{MEDIA_URL_PREFIX}photo{i}.jpg", "imageType": "leaf"}
        for i in range(count)
    ]


@pytest.fixture
def sample_suggestions() -> List[TreeSuggestion]:
    return [
        TreeSuggestion(scientific_name="Ficus benghalensis", common_names=["Banyan"], score=87.5),
        TreeSuggestion(scientific_name="Ficus religiosa", common_names=["Peepal", "Sacred fig"], score=9.1),
    ]


# ============================================================
# Client Fixtures
# ============================================================

@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def media():
    """Mock media host that hands out predictable URLs."""
    mock_media = AsyncMock(spec=MediaStoreClient)

    async def upload(data, filename=None, folder=None):
        return f"{MEDIA_URL_PREFIX}{filename or 'upload.jpg'}"

    mock_media.upload.side_effect = upload
    mock_media.destroy.return_value = {"result": "ok"}
    mock_media.public_id_from_url.side_effect = MediaStoreClient.public_id_from_url
    return mock_media


@pytest.fixture
def text_generator():
    mock_generator = AsyncMock(spec=TextGenerationClient)
    mock_generator.complete.return_value = SAMPLE_AI_RESPONSE
    return mock_generator


@pytest.fixture
def plant_identifier(sample_suggestions):
    mock_identifier = AsyncMock(spec=PlantIdentificationClient)
    mock_identifier.identify.return_value = sample_suggestions
    return mock_identifier


@pytest.fixture
def identity():
    return AsyncMock(spec=IdentityClient)


@pytest.fixture
def mail():
    mock_mail = AsyncMock(spec=MailClient)
    mock_mail.build_message.side_effect = MailClient(username="sender@example.com").build_message
    return mock_mail


# ============================================================
# Service Fixtures
# ============================================================

@pytest.fixture
def tree_service(store, media, text_generator, plant_identifier) -> TreeService:
    return TreeService(
        store=store,
        media=media,
        text_generator=text_generator,
        plant_identifier=plant_identifier,
        max_images=4,
        public_id_attempts=3,
        rng=random.Random(42),
    )


@pytest.fixture
def listing_service(store) -> ListingService:
    return ListingService(store=store)


@pytest.fixture
def volunteer_service(identity, store) -> VolunteerService:
    return VolunteerService(identity=identity, store=store)


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)


@pytest.fixture
def app_client(store, media, text_generator, plant_identifier, identity, mail):
    """Test client whose remote clients are all fakes."""
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_media_store] = lambda: media
    app.dependency_overrides[get_text_generator] = lambda: text_generator
    app.dependency_overrides[get_plant_identifier] = lambda: plant_identifier
    app.dependency_overrides[get_identity_client] = lambda: identity
    app.dependency_overrides[get_mail_client] = lambda: mail
    try:
        yield TestClient(app, follow_redirects=False)
    finally:
        app.dependency_overrides.clear()
