"""Format catalog configuration."""

from accesslog_json.lib.config.settings import AccessLogConfig, load_config, resolve_config_path

__all__ = ["AccessLogConfig", "load_config", "resolve_config_path"]
