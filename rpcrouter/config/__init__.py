"""Configuration module for rpcrouter."""

from rpcrouter.config.loader import load_config, get_config_path, save_config
from rpcrouter.config.schema import RouterConfig

__all__ = ["RouterConfig", "load_config", "save_config", "get_config_path"]
