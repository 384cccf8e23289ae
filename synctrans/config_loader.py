"""Handles loading configuration from YAML files and the environment."""

import copy
import yaml
import os
import logging
from typing import Optional
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "model_name": "gemini-2.5-flash",
    "api_key_env": "GEMINI_API_KEY",
    "request_timeout_seconds": 60,
    "max_audio_mb": 20,
    "output_dir": "exports",
    "export_formats": ["pdf", "txt"],
    "fonts": {
        "tamil_regular": "fonts/NotoSansTamil-Regular.ttf",
        "tamil_bold": "fonts/NotoSansTamil-Bold.ttf",
    },
    "log_dir": "logs",
    "log_file": "synctrans.log",
}

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def defaults(self) -> dict:
        return copy.deepcopy(DEFAULT_CONFIG)

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Values found in the file override DEFAULT_CONFIG; nested mappings
        (e.g. ``fonts``) are merged key by key.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the merged configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
             logger.error(f"Configuration path is not a file: {config_path}")
             raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except IOError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")

        config = self.defaults()
        for key, value in loaded.items():
            if isinstance(value, dict) and isinstance(config.get(key), dict):
                config[key].update(value)
            else:
                config[key] = value
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config

def resolve_api_key(config: dict, environ: Optional[dict] = None) -> str:
    """
    Reads the model API key from the environment variable named in the config.

    Raises:
        ConfigurationError: If the variable is unset or empty. Nothing can run without it.
    """
    env = os.environ if environ is None else environ
    var_name = config.get("api_key_env") or DEFAULT_CONFIG["api_key_env"]
    api_key = env.get(var_name, "").strip()
    if not api_key:
        raise ConfigurationError(f"{var_name} environment variable not set")
    return api_key
