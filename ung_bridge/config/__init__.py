"""
Configuration management for the tool-mediation layer.

Defaults live in frozen dataclasses; an optional YAML file and per-call
overrides are merged on top of them.
"""
from .defaults import BridgeSettings, get_default_config
from .loader import ConfigLoader, load_settings

__all__ = ["BridgeSettings", "ConfigLoader", "get_default_config", "load_settings"]
