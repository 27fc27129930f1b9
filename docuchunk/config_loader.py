"""
Configuration loader for DocuChunk.
This module loads chunking settings (context window, overlap, keyword count
and per-model context window presets) from environment variables.
"""

import os
import logging
from typing import Dict, Any
from dotenv import load_dotenv

# Set up logger
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv(dotenv_path=".env", override=False)

# Context windows (in estimated tokens) for the supported target models
MODEL_DEFAULT_CONTEXT_WINDOWS: Dict[str, int] = {
    "Llama3": 2048,
    "Claude": 4096,
    "Gemini": 4096,
}


def get_env_value(env_key: str, default: Any, value_type: type = str) -> Any:
    """
    Get value from environment variable with type conversion

    Args:
        env_key (str): Environment variable key
        default (any): Default value if env variable is not set
        value_type (type): Type to convert the value to

    Returns:
        any: Converted value from environment or default
    """
    value = os.getenv(env_key)
    if value is None:
        return default

    if value_type is bool:
        return value.lower() in ("true", "1", "yes", "t", "on")
    try:
        return value_type(value)
    except ValueError:
        logger.warning(f"Could not convert {env_key}={value} to {value_type}, using default {default}")
        return default


class ChunkingConfig:
    """Configuration for document chunking."""

    def __init__(self):
        # Target model
        self.default_model = get_env_value("DEFAULT_MODEL", "Gemini")
        self.model_context_windows = dict(MODEL_DEFAULT_CONTEXT_WINDOWS)

        # Chunking settings
        default_window = self.model_context_windows.get(self.default_model, 4096)
        self.context_window = get_env_value("CHUNK_CONTEXT_WINDOW", default_window, int)
        self.chunk_overlap = get_env_value("CHUNK_OVERLAP", 200, int)
        self.keyword_count = get_env_value("KEYWORD_COUNT", 10, int)

        # Cleaning settings
        self.enable_cleaning = get_env_value("ENABLE_CLEANING", True, bool)

        if self.context_window <= 0:
            logger.warning(f"CHUNK_CONTEXT_WINDOW={self.context_window} is not positive, using {default_window}")
            self.context_window = default_window
        if self.chunk_overlap < 0:
            logger.warning(f"CHUNK_OVERLAP={self.chunk_overlap} is negative, using 0")
            self.chunk_overlap = 0

    def context_window_for_model(self, model_name: str) -> int:
        """
        Look up the context window preset for a model.

        Args:
            model_name: Name of the target model (e.g. "Claude")

        Returns:
            int: The model's preset, or the configured context window for unknown models
        """
        return self.model_context_windows.get(model_name, self.context_window)


# Create a singleton instance
chunking_config = ChunkingConfig()


def get_chunking_config() -> ChunkingConfig:
    """
    Get the chunking configuration singleton.

    Returns:
        ChunkingConfig: The chunking configuration instance
    """
    return chunking_config
