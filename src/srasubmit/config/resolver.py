"""
Placeholder substitution for configuration values.

``${VAR_NAME}`` is replaced from the process environment and ``{env}`` with
the active environment name, so FTP/SFTP credentials and per-environment
remote directories stay out of config files. A variable that isn't set is
kept verbatim; ``find_unresolved`` reports where that happened.
"""

import os
import re
from collections.abc import Iterator
from typing import Any

_ENV_VAR = re.compile(r"\$\{([^}]+)\}")


def resolve_config(config_data: dict[str, Any], env: str = "dev") -> dict[str, Any]:
    """
    Substitute placeholders throughout a configuration mapping.

    Args:
        config_data: Configuration dictionary
        env: Current environment name

    Returns:
        A new dictionary with every string value resolved
    """
    return _resolve_value(config_data, env)


def find_unresolved(config_data: dict[str, Any]) -> list[str]:
    """
    List the ``${VAR}`` placeholders still present after resolution.

    Returns:
        Sorted entries of the form ``"transfer.password: ${SRA_PASSWORD}"``
    """
    found = []
    for path, text in _walk_strings(config_data, ()):
        for match in _ENV_VAR.finditer(text):
            found.append(f"{'.'.join(path)}: {match.group(0)}")
    return sorted(found)


def _resolve_value(value: Any, env: str) -> Any:
    if isinstance(value, dict):
        return {k: _resolve_value(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_value(item, env) for item in value]
    if isinstance(value, str):
        return _substitute(value, env)
    return value


def _substitute(text: str, env: str) -> str:
    def lookup(match: re.Match) -> str:
        return os.environ.get(match.group(1), match.group(0))

    return _ENV_VAR.sub(lookup, text).replace("{env}", env)


def _walk_strings(value: Any, path: tuple[str, ...]) -> Iterator[tuple[tuple[str, ...], str]]:
    if isinstance(value, dict):
        for key, item in value.items():
            yield from _walk_strings(item, (*path, str(key)))
    elif isinstance(value, list):
        for index, item in enumerate(value):
            yield from _walk_strings(item, (*path, str(index)))
    elif isinstance(value, str):
        yield path, value
