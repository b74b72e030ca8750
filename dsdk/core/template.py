"""
dsdk.core.template - URL template rendering
===========================================

Templates use ``str.format`` placeholders, e.g. ``{hostname}``. Rendering is
strict: every supplied value must be referenced by the template.
"""

from __future__ import annotations

import string
from typing import Mapping, Sequence, Set, Union

from dsdk.core.errors import TemplateError

CONN_TEMPLATE = "http://{hostname}:{port}/v{version}/{endpoint}"
SECURE_CONN_TEMPLATE = "https://{hostname}:{port}/v{version}/{endpoint}"

_formatter = string.Formatter()


def template_fields(template: str) -> Set[str]:
    """
    Return the placeholder names referenced by ``template``.

    Raises
    ------
    TemplateError
        If the template is not a valid format string or uses positional
        placeholders.
    """
    fields: Set[str] = set()
    try:
        parsed = list(_formatter.parse(template))
    except ValueError as exc:
        raise TemplateError(f"Invalid template {template!r}: {exc}") from exc
    for _, field_name, _, _ in parsed:
        if field_name is None:
            continue
        name = field_name.split(".", 1)[0].split("[", 1)[0]
        if not name or name.isdigit():
            raise TemplateError(f"Positional placeholder in template {template!r}")
        fields.add(name)
    return fields


def _as_mapping(values: Union[Mapping[str, str], Sequence[str]]) -> Mapping[str, str]:
    if isinstance(values, Mapping):
        return values
    out = {}
    for pair in values:
        key, sep, value = str(pair).partition("=")
        if not sep:
            raise TemplateError(f"Template argument {pair!r} is not of the form name=value")
        out[key] = value
    return out


def render_template(template: str, values: Union[Mapping[str, str], Sequence[str]]) -> str:
    """
    Fill ``template`` with ``values``.

    Parameters
    ----------
    template : str
        Format string, e.g. ``"https://{hostname}:{port}/v{version}/{endpoint}"``
    values : mapping or sequence of "name=value" strings
        Placeholder values

    Returns
    -------
    str
        The rendered string

    Raises
    ------
    TemplateError
        If the template is invalid, a supplied key is not referenced by the
        template, or a referenced placeholder has no value.

    Examples
    --------
    >>> render_template("http://{hostname}:{port}/", {"hostname": "h", "port": "1"})
    'http://h:1/'
    """
    argm = _as_mapping(values)
    fields = template_fields(template)
    for key in argm:
        if key not in fields:
            raise TemplateError(f"Could not find arg {key!r} in template {template!r}")
    try:
        return template.format_map(argm)
    except (KeyError, IndexError, AttributeError, ValueError) as exc:
        raise TemplateError(f"Could not render template {template!r}: {exc}") from exc
