import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config import Config, DevelopmentConfig, ProductionConfig, TestingConfig, get_config


def test_get_config_lookup():
    assert get_config('production') is ProductionConfig
    assert get_config('testing') is TestingConfig
    assert get_config('unknown') is DevelopmentConfig
    assert get_config() is DevelopmentConfig


def test_testing_config_is_seeded():
    assert TestingConfig.TESTING is True
    assert TestingConfig.CLUSTER_SEED == 7
    assert TestingConfig.GEMINI_API_KEY == 'test-key'


def test_defaults():
    assert Config.MAX_CONTENT_LENGTH == 16 * 1024 * 1024
    assert Config.GEMINI_API_BASE.startswith('http')
    assert Config.MAX_PATH_DEPTH > 0
