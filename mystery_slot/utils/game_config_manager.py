"""
Game configuration manager.

Loads reel tuning files, validates them and caches the result, and builds
the sanitized view of the game that clients are allowed to see (paytable and
layout, never reel weights).
"""
import json
import logging
import os
import time
from typing import Any, Dict, Optional

from marshmallow import ValidationError

from mystery_slot.config_validator import validate_reel_config
from mystery_slot.exceptions import ConfigurationError
from mystery_slot.schemas import ReelConfigSchema
from mystery_slot.utils.bet_ladder import BET_LADDER
from mystery_slot.utils.reel_config import DEFAULT_CONFIG, PAYING_SYMBOLS, ReelConfig

logger = logging.getLogger(__name__)


def load_reel_config(path) -> ReelConfig:
    """
    Reads a JSON tuning file and returns a validated ReelConfig.

    Keys missing from the file keep their built-in values.

    Raises:
        ConfigurationError: File missing or unreadable, malformed JSON, or
            values rejected by the schema or the validator.
    """
    if not os.path.exists(path):
        raise ConfigurationError(f"Reel configuration file not found: {path}", details={'path': path})
    try:
        with open(path, 'r') as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in {path}: {e.msg} (line {e.lineno}, col {e.colno})", details={'path': path}
        )
    try:
        config = ReelConfigSchema().load(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Reel configuration file {path} has invalid fields", details={'path': path, 'errors': e.messages}
        )
    logger.info("Loaded reel configuration from %s", path)
    return validate_reel_config(config)


def dump_reel_config(config, path=None) -> Dict[str, Any]:
    """
    Serializes a ReelConfig to the tuning file shape; writes it to ``path`` when given.
    """
    data = ReelConfigSchema().dump(config)
    if path:
        with open(path, 'w') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    return data


class GameConfigManager:
    """Cached access to the active reel configuration."""

    _config_cache = {}
    _cache_timestamp = {}
    CACHE_TTL = 300  # 5 minutes cache TTL

    @classmethod
    def get_reel_config(cls, path: Optional[str] = None) -> ReelConfig:
        """
        The configuration at ``path``, or the built-in tuning when no path is set.

        Raises:
            ConfigurationError: As ``load_reel_config``.
        """
        if not path:
            return validate_reel_config(DEFAULT_CONFIG)

        current_time = time.time()
        if (path in cls._config_cache and
                current_time - cls._cache_timestamp.get(path, 0) < cls.CACHE_TTL):
            return cls._config_cache[path]

        config = load_reel_config(path)
        cls._config_cache[path] = config
        cls._cache_timestamp[path] = current_time
        return config

    @classmethod
    def clear_cache(cls):
        cls._config_cache.clear()
        cls._cache_timestamp.clear()

    @classmethod
    def get_client_config(cls, config: ReelConfig) -> Dict[str, Any]:
        """
        Sanitized configuration for client-side use.
        Reel weights and burst tuning stay on the server.
        """
        paytable = {
            sym.name: {str(length): pay for length, pay in sorted(config.paytable.get(sym, {}).items())}
            for sym in PAYING_SYMBOLS
        }
        return {
            "game": {
                "name": "Mystery Slot",
                "layout": {"rows": config.rows, "columns": config.cols},
                "symbols": [{"name": sym.name, "glyph": sym.glyph} for sym in PAYING_SYMBOLS],
                "paytable": paytable,
                "bonus": {
                    "free_spins": config.free_spin_count,
                    "scatters_to_trigger": config.min_scatters_to_trigger,
                    "buy_cost_multiplier": config.bonus_buy_cost_multiplier,
                },
                "settings": {
                    "betOptions": list(BET_LADDER),
                },
            }
        }
