# tests/conftest.py
import pytest

from adapters.pyreflect.describe import DescriptorFactory
from adapters.pyreflect.discovery import classes_defined_in, is_available_type
from sample_models import shop
from typegen.config_models import TypeGenConfig
from typegen.db import get_settings


@pytest.fixture
def factory():
    return DescriptorFactory.from_classes(c for c in classes_defined_in(shop) if is_available_type(c))


@pytest.fixture
def make_policy():
    def _make(**overrides):
        return TypeGenConfig(**overrides).policy()
    return _make


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    monkeypatch.delenv("TYPEGEN_DATABASE_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
