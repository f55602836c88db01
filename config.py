"""
Configuration settings for the Mind Map Insights API
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_int(name):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return None
    return int(value)


class Config:
    """Base configuration."""

    # Flask settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    TESTING = False
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 5000))

    # API settings
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max request size

    # CORS settings
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Gemini settings. Generation and embeddings share the same key.
    GEMINI_API_KEY = os.getenv('GEMINI_API_KEY')
    GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash-exp')
    GEMINI_EMBEDDING_MODEL = os.getenv('GEMINI_EMBEDDING_MODEL', 'models/text-embedding-004')
    GEMINI_API_BASE = os.getenv(
        'GEMINI_API_BASE', 'https://generativelanguage.googleapis.com/v1beta'
    )

    # External API settings (seconds)
    EXTERNAL_API_TIMEOUT = int(os.getenv('EXTERNAL_API_TIMEOUT', 30))
    EMBEDDING_TIMEOUT = int(os.getenv('EMBEDDING_TIMEOUT', 10))

    # Saved mind maps live in a single JSON file
    STORAGE_PATH = os.getenv('STORAGE_PATH', os.path.join('data', 'saved_mindmaps.json'))

    # Analysis settings. Leave CLUSTER_SEED unset for randomised label propagation.
    CLUSTER_SEED = _optional_int('CLUSTER_SEED')
    MAX_PATH_DEPTH = int(os.getenv('MAX_PATH_DEPTH', 8))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    GEMINI_API_KEY = 'test-key'
    CLUSTER_SEED = 7


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(env='default'):
    """Get configuration based on environment."""
    return config.get(env, config['default'])
