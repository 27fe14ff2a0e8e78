"""Parameter binding and template interpolation.

Placeholders are written ``{name}``. Every template is substituted in a
single scan, so text produced by a substitution is never scanned again and
a value containing ``{other}`` stays literal. Placeholders with no value
are left verbatim; missing required parameters are not rejected here.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlencode

from toolsmith.models.enums import ParameterLocation

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from toolsmith.schemas.tool import ParameterSpec

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")
SAFE_SHELL_ARG_PATTERN = re.compile(r"^[a-zA-Z0-9_./-]+$")
_ENV_NAME_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def stringify(value: Any) -> str:
    """Render a parameter value as text.

    Example:
        >>> [stringify(v) for v in ("a", True, None, {"k": 1}, 2.5)]
        ['a', 'true', '', '{"k": 1}', '2.5']
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, dict | list | tuple):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def quote_shell_arg(value: str) -> str:
    """Quote a value so /bin/sh reads it as one literal word.

    Values made only of ``[a-zA-Z0-9_./-]`` are returned bare; everything
    else is wrapped in single quotes with embedded quotes written ``'\\''``.

    Example:
        >>> quote_shell_arg("two words")
        "'two words'"
    """
    if SAFE_SHELL_ARG_PATTERN.match(value):
        return value
    return "'" + value.replace("'", "'\\''") + "'"


def env_var_name(name: str) -> str:
    """Environment variable name for a parameter (``api-key`` -> ``API_KEY``)."""
    return _ENV_NAME_SEPARATORS.sub("_", name).upper()


def substitute(template: str, replacements: Mapping[str, str]) -> str:
    """Replace ``{name}`` placeholders found in ``replacements`` in one scan."""

    def _replace(match: re.Match[str]) -> str:
        return replacements.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def placeholders(template: str) -> set[str]:
    """Names of all placeholders in a template."""
    return set(PLACEHOLDER_PATTERN.findall(template))


class ParameterBinder:
    """Places parameter values into the channels of a tool run.

    Declared defaults fill in names the caller omitted. Each channel
    encodes values for its own context: percent-encoding in URLs, shell
    quoting in commands, JSON literals in bodies.

    Example:
        >>> binder = ParameterBinder(tool.parameters, {"city": "São Paulo"})
        >>> binder.interpolate_url("https://api.example.com/{city}")
        'https://api.example.com/S%C3%A3o%20Paulo'
    """

    def __init__(
        self,
        parameters: Sequence[ParameterSpec],
        values: Mapping[str, Any] | None = None,
    ) -> None:
        self.parameters = list(parameters)
        self.values: dict[str, Any] = dict(values or {})
        for param in self.parameters:
            if param.name not in self.values and param.default is not None:
                self.values[param.name] = param.default

    def names_at(self, *locations: ParameterLocation | str) -> list[str]:
        """Declared parameters at the given locations that have a value."""
        wanted = {getattr(loc, "value", loc) for loc in locations}
        return [
            param.name
            for param in self.parameters
            if param.location in wanted and self.values.get(param.name) is not None
        ]

    def _encoded(self, encode: Callable[[str], str]) -> dict[str, str]:
        return {name: encode(stringify(value)) for name, value in self.values.items()}

    # -------------------------------------------------------------------------
    # HTTP channels
    # -------------------------------------------------------------------------

    def interpolate_url(self, template: str) -> str:
        """Substitute values into a URL template, percent-encoded once."""
        return substitute(template, self._encoded(lambda text: quote(text, safe="")))

    def query_string(self, url_template: str = "") -> str:
        """Encode query-located values not already placed by the URL template."""
        consumed = placeholders(url_template)
        pairs = [
            (name, stringify(self.values[name]))
            for name in self.names_at(ParameterLocation.QUERY)
            if name not in consumed
        ]
        return urlencode(pairs)

    def build_url(self, template: str) -> str:
        """Interpolated URL with the query string appended."""
        url = self.interpolate_url(template)
        query = self.query_string(template)
        if query:
            url += ("&" if "?" in url else "?") + query
        return url

    def interpolate_headers(self, templates: Mapping[str, str]) -> dict[str, str]:
        """Substitute values literally into header templates.

        Header-located parameters that no template references are sent as a
        header named after the parameter.
        """
        replacements = self._encoded(lambda text: text)
        headers = {name: substitute(value, replacements) for name, value in templates.items()}

        referenced: set[str] = set()
        for value in templates.values():
            referenced |= placeholders(value)
        for name in self.names_at(ParameterLocation.HEADER):
            if name not in referenced:
                headers[name] = replacements[name]
        return headers

    def interpolate_body(self, template: str) -> str:
        """Substitute strings literally and other values as JSON literals."""
        replacements = {
            name: value
            if isinstance(value, str)
            else json.dumps(value, ensure_ascii=False, default=str)
            for name, value in self.values.items()
        }
        return substitute(template, replacements)

    # -------------------------------------------------------------------------
    # CLI channels
    # -------------------------------------------------------------------------

    def interpolate_command(self, template: str) -> str:
        """Substitute shell-quoted values into a command template."""
        return substitute(template, self._encoded(quote_shell_arg))

    def environment_entries(self) -> dict[str, str]:
        """Env-located values keyed by their environment variable name."""
        return {
            env_var_name(name): stringify(self.values[name])
            for name in self.names_at(ParameterLocation.ENV)
        }


__all__ = [
    "PLACEHOLDER_PATTERN",
    "ParameterBinder",
    "env_var_name",
    "placeholders",
    "quote_shell_arg",
    "stringify",
    "substitute",
]
