"""Message interpolation and plural selection."""

import re
from typing import Any, Mapping, Optional

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def interpolate(template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
    """
    Replace {name} placeholders with str(variables[name]).

    Placeholders with no matching variable are left as written.
    """
    if not variables:
        return template

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, template)


def pluralize(count: int, forms: Mapping[str, str]) -> str:
    """
    Pick a plural form: zero (when supplied and non-empty) for 0, one for 1,
    other for everything else.
    """
    if count == 0 and forms.get("zero"):
        return forms["zero"]
    if count == 1:
        return forms.get("one", forms.get("other", ""))
    return forms.get("other", "")


def is_plural_forms(value: Any) -> bool:
    return isinstance(value, Mapping) and "other" in value and all(isinstance(v, str) for v in value.values())
