"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Output and logging (Loguru)
- Console management (Rich)
"""

# Configuration
from .config import (
    Config,
    load_config,
    parse_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
    create_default_config,
)

# Output
from .output import clear_ui_mode, drain_pending_messages, log, set_ui_mode, setup_loguru

# Console
from .console import get_console, safe_print

__all__ = [
    # Config
    "Config",
    "load_config",
    "parse_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    "create_default_config",
    # Output
    "log",
    "setup_loguru",
    "set_ui_mode",
    "clear_ui_mode",
    "drain_pending_messages",
    # Console
    "get_console",
    "safe_print",
]
