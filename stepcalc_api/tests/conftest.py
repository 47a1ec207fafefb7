"""
Pytest configuration and fixtures.

Provides shared fixtures for API testing.
"""

import pytest
from fastapi.testclient import TestClient

from stepcalc.core.config import Settings
from stepcalc_api.main import app
from stepcalc_api.services import CalculatorService


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client"""
    return TestClient(app)


@pytest.fixture
def service() -> CalculatorService:
    """Calculator service with default settings"""
    return CalculatorService(Settings())
