from .store import INVALID, ParameterStore, apply_parameter, parse_lenient

__all__ = ["INVALID", "ParameterStore", "apply_parameter", "parse_lenient"]
