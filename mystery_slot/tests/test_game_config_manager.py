import json

import pytest

from mystery_slot.exceptions import ConfigurationError
from mystery_slot.utils.bet_ladder import BET_LADDER
from mystery_slot.utils.game_config_manager import GameConfigManager, dump_reel_config, load_reel_config
from mystery_slot.utils.reel_config import DEFAULT_CONFIG, PAYING_SYMBOLS, Symbol


@pytest.fixture(autouse=True)
def clear_config_cache():
    GameConfigManager.clear_cache()
    yield
    GameConfigManager.clear_cache()


def _write(tmp_path, content, name="tuning.json"):
    path = tmp_path / name
    path.write_text(content if isinstance(content, str) else json.dumps(content))
    return str(path)


def test_load_partial_file(tmp_path):
    path = _write(tmp_path, {"free_spin_count": 10, "burst_chance": 0.25})
    config = load_reel_config(path)
    assert config.free_spin_count == 10
    assert config.burst_chance == 0.25
    assert config.paytable == DEFAULT_CONFIG.paytable


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        load_reel_config(str(tmp_path / "nope.json"))
    assert "not found" in exc_info.value.status_message


def test_malformed_json(tmp_path):
    path = _write(tmp_path, "{not json")
    with pytest.raises(ConfigurationError) as exc_info:
        load_reel_config(path)
    assert "Invalid JSON" in exc_info.value.status_message


def test_schema_errors_become_configuration_errors(tmp_path):
    path = _write(tmp_path, {"rows": "four"})
    with pytest.raises(ConfigurationError) as exc_info:
        load_reel_config(path)
    assert 'rows' in exc_info.value.details['errors']


def test_values_are_validated(tmp_path):
    path = _write(tmp_path, {"burst_chance": 2})
    with pytest.raises(ConfigurationError) as exc_info:
        load_reel_config(path)
    assert any("burst_chance" in e for e in exc_info.value.details['errors'])


def test_dump_then_load(tmp_path):
    path = str(tmp_path / "dumped.json")
    changed = DEFAULT_CONFIG.evolve(free_spin_count=9, same_row_boosts=(1.2, 1.5))
    dump_reel_config(changed, path)
    assert load_reel_config(path) == changed


def test_manager_uses_built_in_tuning_without_path():
    assert GameConfigManager.get_reel_config(None) == DEFAULT_CONFIG


def test_manager_caches_loaded_files(tmp_path):
    path = _write(tmp_path, {"free_spin_count": 5})
    first = GameConfigManager.get_reel_config(path)
    # Later edits are not seen until the cache expires or is cleared.
    _write(tmp_path, {"free_spin_count": 6})
    assert GameConfigManager.get_reel_config(path) is first
    GameConfigManager.clear_cache()
    assert GameConfigManager.get_reel_config(path).free_spin_count == 6


def test_client_config_is_sanitized():
    data = GameConfigManager.get_client_config(DEFAULT_CONFIG)["game"]
    assert data["layout"] == {"rows": 4, "columns": 6}
    assert [s["name"] for s in data["symbols"]] == [sym.name for sym in PAYING_SYMBOLS]
    assert data["paytable"]["CLOVER"] == {"3": 0.90, "4": 2.20, "5": 5.00, "6": 10.00}
    assert data["bonus"] == {"free_spins": 7, "scatters_to_trigger": 3, "buy_cost_multiplier": 100.0}
    assert data["settings"]["betOptions"] == list(BET_LADDER)
    serialized = json.dumps(data)
    assert "base_pool" not in serialized
    assert Symbol.SCATTER.name not in serialized
