import pytest

from mystery_slot.app import create_app
from mystery_slot.config import TestingConfig
from mystery_slot.utils.game_config_manager import GameConfigManager


@pytest.fixture
def app():
    """Fresh app (and so a fresh engine and rng stream) for every test."""
    GameConfigManager.clear_cache()
    app = create_app(TestingConfig)
    yield app
    GameConfigManager.clear_cache()


@pytest.fixture
def client(app):
    return app.test_client()
