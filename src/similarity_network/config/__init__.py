"""Configuration for similarity-network."""

from .settings import NetworkConfig, load_config

__all__ = ["NetworkConfig", "load_config"]
