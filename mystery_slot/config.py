"""
Application settings read from the environment.

Values come from environment variables, with a ``.env`` file loaded first
when present. Reel tuning itself lives in ``ReelConfig``; this module only
says where to find it and how the service is run.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name, default):
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer (got {value!r})")


def _env_bool(name, default='False'):
    return os.getenv(name, default).lower() in ('true', '1', 't')


class Config:
    # Seed of the interactive engine stream
    SLOT_ENGINE_SEED = _env_int('SLOT_ENGINE_SEED', 20250828)

    # Default seed of /simulate requests that do not send one
    SIMULATION_SEED = _env_int('SIMULATION_SEED', 123456)

    # Optional JSON tuning file; the built-in tuning is used when unset
    SLOT_CONFIG_PATH = os.getenv('SLOT_CONFIG_PATH') or None

    # Upper bound on spins (or bonus rounds) per /simulate request
    MAX_SIMULATION_SPINS = _env_int('MAX_SIMULATION_SPINS', 200000)

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Flask Debug Mode
    DEBUG = _env_bool('FLASK_DEBUG')

    JSON_SORT_KEYS = False


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SLOT_ENGINE_SEED = 42
    SIMULATION_SEED = 123456
    SLOT_CONFIG_PATH = None
    MAX_SIMULATION_SPINS = 5000
    LOG_LEVEL = 'WARNING'
