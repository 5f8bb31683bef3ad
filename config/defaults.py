"""
Default configuration values for reposearch.

Centralized defaults that can be overridden by environment variables or config files.
"""

import copy
from typing import Dict, Any

# Global default settings
DEFAULT_SETTINGS = {
    # Qdrant configuration
    "qdrant": {
        "url": "http://localhost:6333",
        "api_key": None,
        "timeout": 60.0,
        "collection_prefix": "reposearch",
        "batch_size": 100,
        "show_progress": False
    },

    # Repositories reported on by `reposearch status`
    "repositories": [],

    # Logging
    "log_level": "INFO"
}

# Environment variable mappings
ENV_VAR_MAPPING = {
    'REPOSEARCH_QDRANT_URL': 'qdrant.url',
    'REPOSEARCH_QDRANT_API_KEY': 'qdrant.api_key',
    'REPOSEARCH_QDRANT_TIMEOUT': 'qdrant.timeout',
    'REPOSEARCH_COLLECTION_PREFIX': 'qdrant.collection_prefix',
    'REPOSEARCH_BATCH_SIZE': 'qdrant.batch_size',
    'REPOSEARCH_SHOW_PROGRESS': 'qdrant.show_progress',
    'REPOSEARCH_LOG_LEVEL': 'log_level'
}

# Values that must stay strings even when they look numeric or boolean
STRING_SETTINGS = {'qdrant.url', 'qdrant.api_key', 'qdrant.collection_prefix', 'log_level'}


def get_default_config() -> Dict[str, Any]:
    """Get a fresh copy of the default configuration"""
    return copy.deepcopy(DEFAULT_SETTINGS)
