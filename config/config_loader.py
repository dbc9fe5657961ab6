import json
import os
from datetime import datetime

from rich.console import Console

from logger.logger import TRACE_FORMATS
from tapemachine.paged_tape import BUFFER_SIZE
from tapemachine.transition_table import MAX_STATES

DEFAULT_CONFIG = {
    "buffer_size": BUFFER_SIZE,
    "state_limit": MAX_STATES,
    "trace_enabled": True,
    "trace_output": "",
    "trace_format": "text",
    "show_summary": True
}

# Expected types for validation
CONFIG_SCHEMA = {
    "buffer_size": int,
    "state_limit": int,
    "trace_enabled": bool,
    "trace_output": str,
    "trace_format": str,
    "show_summary": bool
}

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "runtime_config.json")

console = Console(stderr=True, soft_wrap=True)


def validate_config(config):
    for key, expected_type in CONFIG_SCHEMA.items():
        if key not in config:
            raise ValueError(f"Missing required configuration key: {key}")
        # JSON true/false are not integers here
        if not isinstance(config[key], expected_type) or (expected_type is int and isinstance(config[key], bool)):
            raise TypeError(f"Config key '{key}' expected {expected_type}, got {type(config[key])}.")

    if config["buffer_size"] <= 0:
        raise ValueError("Config key 'buffer_size' must be a positive integer.")
    if not 0 < config["state_limit"] <= MAX_STATES:
        raise ValueError(f"Config key 'state_limit' must be between 1 and {MAX_STATES}.")
    if config["trace_format"] not in TRACE_FORMATS:
        raise ValueError(f"Config key 'trace_format' must be one of {TRACE_FORMATS}.")


def load_config(path=None, verbose=False):
    """Merge a JSON config file over DEFAULT_CONFIG and validate the result.

    Without a path the shipped runtime_config.json is read when present.
    """
    config = DEFAULT_CONFIG.copy()

    if path is None and os.path.exists(DEFAULT_CONFIG_PATH):
        path = DEFAULT_CONFIG_PATH

    if path is not None:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Configuration file not found at: {path}")

        with open(path, "r", encoding="utf-8") as f:
            user_config = json.load(f)
        if not isinstance(user_config, dict):
            raise TypeError(f"Configuration file {path} must hold a JSON object.")

        # Merge defaults with overrides
        config.update(user_config)

    validate_config(config)

    if verbose:
        console.print(f"[{datetime.now()}] Loaded config:", markup=False)
        for key, value in config.items():
            console.print(f"  {key}: {value!r}", markup=False)

    return config
