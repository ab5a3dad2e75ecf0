"""
Hierarchical key-value configuration reader.

Wraps a nested dictionary (typically parsed from JSON) and exposes typed
lookups relative to the current scope. Scopes are entered with push_scope()
and left with pop_scope(), or with the scope() context manager:

    provider = ParameterProvider.from_json('mct.json')
    n_comp = provider.get_int('NCOMP')
    with provider.scope('discretization'):
        n_col = provider.get_int('NCOL')
"""

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Union

import numpy as np

from .errors import ConfigurationError


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, np.ndarray))


class ParameterProvider:
    """Typed read access to a nested parameter dictionary."""

    def __init__(self, data: Dict[str, Any]):
        if not isinstance(data, dict):
            raise ConfigurationError("Parameter root must be a mapping")
        self._stack = [data]
        self._names = []

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'ParameterProvider':
        """Read parameters from a JSON file."""
        with open(path) as f:
            return cls(json.load(f))

    @property
    def current_scope(self) -> str:
        return '/' + '/'.join(self._names)

    def exists(self, name: str) -> bool:
        return name in self._stack[-1]

    def is_array(self, name: str) -> bool:
        return _is_sequence(self._get(name))

    def _get(self, name: str) -> Any:
        try:
            return self._stack[-1][name]
        except KeyError:
            raise ConfigurationError(
                f"Missing parameter '{name}' in scope '{self.current_scope}'") from None

    def _scalar(self, name: str) -> Any:
        value = self._get(name)
        if _is_sequence(value):
            if len(value) != 1:
                raise ConfigurationError(
                    f"Parameter '{name}' in scope '{self.current_scope}' must be a scalar, "
                    f"got {len(value)} values")
            value = value[0]
        return value

    def get_double(self, name: str) -> float:
        value = self._scalar(name)
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Parameter '{name}' is not a number: {value!r}") from None

    def get_int(self, name: str) -> int:
        value = self.get_double(name)
        if not value.is_integer():
            raise ConfigurationError(f"Parameter '{name}' is not an integer: {value!r}")
        return int(value)

    def get_bool(self, name: str) -> bool:
        value = self._scalar(name)
        if isinstance(value, str):
            if value.lower() in ('true', '1', 'yes'):
                return True
            if value.lower() in ('false', '0', 'no'):
                return False
            raise ConfigurationError(f"Parameter '{name}' is not a boolean: {value!r}")
        return bool(value)

    def get_string(self, name: str) -> str:
        value = self._scalar(name)
        if not isinstance(value, str):
            raise ConfigurationError(f"Parameter '{name}' is not a string: {value!r}")
        return value

    def get_double_array(self, name: str) -> np.ndarray:
        value = self._get(name)
        try:
            return np.atleast_1d(np.asarray(value, dtype=float)).ravel()
        except (TypeError, ValueError):
            raise ConfigurationError(f"Parameter '{name}' is not a numeric array") from None

    def get_int_array(self, name: str) -> np.ndarray:
        values = self.get_double_array(name)
        if not np.all(np.mod(values, 1) == 0):
            raise ConfigurationError(f"Parameter '{name}' is not an integer array")
        return values.astype(int)

    def push_scope(self, name: str) -> None:
        value = self._get(name)
        if not isinstance(value, dict):
            raise ConfigurationError(f"'{name}' in scope '{self.current_scope}' is not a scope")
        self._stack.append(value)
        self._names.append(name)

    def pop_scope(self) -> None:
        if len(self._stack) == 1:
            raise RuntimeError("Cannot pop the root scope")
        self._stack.pop()
        self._names.pop()

    @contextmanager
    def scope(self, name: str) -> Iterator['ParameterProvider']:
        self.push_scope(name)
        try:
            yield self
        finally:
            self.pop_scope()
