"""
Shared fixtures for the ID scan test suite
"""
import pytest
from httpx import AsyncClient, ASGITransport

from idscan.config import Settings
from idscan.services.ocr_engine import OcrEngineError

from fakes import FakeOcrInvoker


@pytest.fixture
def test_settings() -> Settings:
    return Settings(OCR_TIMEOUT_SECONDS=2.0, VISION_API_KEY="")


@pytest.fixture
def failing_invoker() -> FakeOcrInvoker:
    return FakeOcrInvoker(error=OcrEngineError("engine down"))


@pytest.fixture
async def client():
    """Create async test client."""
    from idscan.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
