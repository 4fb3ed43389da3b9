from .loader import ConfigError, load_catalogs, load_config

__all__ = ["ConfigError", "load_catalogs", "load_config"]
