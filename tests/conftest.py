"""
Pytest configuration and fixtures
"""

import pytest
from core.config import settings
from etl.transformers.enricher import DataEnricher
from etl.transformers.pipeline import TransformPipeline
from tests.fakes import FakeGenerator, FakeRecordStore


@pytest.fixture(autouse=True)
def data_dir(tmp_path, monkeypatch):
    """File sources and destinations resolve inside the test's tmp_path"""
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def fake_generator():
    """Generator that answers every prompt with an empty JSON object"""
    return FakeGenerator()


@pytest.fixture
def enricher(fake_generator):
    return DataEnricher(fake_generator, batch_size=10)


@pytest.fixture
def pipeline(enricher):
    return TransformPipeline(enricher)


@pytest.fixture
def record_store():
    return FakeRecordStore()


@pytest.fixture
def mock_api_data():
    """Mock API response data"""
    return [
        {
            "id": "api_001",
            "name": "  Test Product 1 ",
            "description": "This is a test product",
            "category": "electronics",
            "price": 99.99,
            "created_at": "2024-01-15T10:00:00Z",
            "tags": ["new", "featured"]
        },
        {
            "id": "api_002",
            "name": "Test Product 2",
            "description": "",
            "category": "books",
            "price": 19.99,
            "created_at": "2024-01-15T11:00:00Z",
            "tags": ["bestseller"]
        }
    ]
