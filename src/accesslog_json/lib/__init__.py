"""Core accesslog-json library exports."""

from accesslog_json.lib.compiler import compile_format
from accesslog_json.lib.template.builder import CompiledFormatter
from accesslog_json.lib.types import OutputKey, TokenName

__all__ = ["CompiledFormatter", "OutputKey", "TokenName", "compile_format"]
