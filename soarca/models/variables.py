"""CACAO playbook variables and the name-keyed collection that holds them."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

VARIABLE_TYPE_BOOL = "bool"
VARIABLE_TYPE_DICTIONARY = "dictionary"
VARIABLE_TYPE_FLOAT = "float"
VARIABLE_TYPE_HEX_STRING = "hexstring"
VARIABLE_TYPE_INT = "integer"
VARIABLE_TYPE_IPV4_ADDRESS = "ipv4-addr"
VARIABLE_TYPE_IPV6_ADDRESS = "ipv6-addr"
VARIABLE_TYPE_LONG = "long"
VARIABLE_TYPE_MAC_ADDRESS = "mac-addr"
VARIABLE_TYPE_HASH = "hash"
VARIABLE_TYPE_MD5_HASH = "md5-hash"
VARIABLE_TYPE_SHA256 = "sha256-hash"
VARIABLE_TYPE_STRING = "string"
VARIABLE_TYPE_URI = "uri"
VARIABLE_TYPE_UUID = "uuid"

_VALUE_SUFFIX = ":value"


@dataclass
class Variable:
    """A single CACAO variable, named in the style ``__name__``."""

    type: str = ""
    name: str = ""
    description: str = ""
    value: str = ""
    constant: bool = False
    external: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Variable:
        return cls(
            type=data.get("type") or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
            value=data.get("value") or "",
            constant=bool(data.get("constant", False)),
            external=bool(data.get("external", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        optional = {
            "name": self.name,
            "description": self.description,
            "value": self.value,
            "constant": self.constant,
            "external": self.external,
        }
        result.update((key, value) for key, value in optional.items() if value)
        return result


class Variables(dict[str, Variable]):
    """Variables keyed by their name."""

    def insert(self, variable: Variable) -> bool:
        """Add the variable unless its name is taken; return True if it was added."""
        if variable.name in self:
            return False
        self[variable.name] = variable
        return True

    def insert_or_replace(self, variable: Variable) -> bool:
        """Store the variable; return True if one with that name was replaced."""
        found = variable.name in self
        self[variable.name] = variable
        return found

    def insert_range(self, source: Mapping[str, Variable]) -> None:
        """Add all variables of source, keeping existing ones on a name clash."""
        for variable in source.values():
            self.insert(variable)

    def find(self, key: str) -> Variable | None:
        """Return the variable stored under key, or None."""
        return self.get(key)

    def interpolate(self, text: str) -> str:
        """Replace every ``<name>:value`` reference in text with the variable's value."""
        if not self:
            return text
        replacements = {f"{key}{_VALUE_SUFFIX}": variable.value for key, variable in self.items()}
        pattern = re.compile(
            "|".join(re.escape(key) for key in sorted(replacements, key=len, reverse=True))
        )
        return pattern.sub(lambda match: replacements[match.group(0)], text)

    def select(self, keys: Iterable[str]) -> Variables:
        """Return a new collection with only the given keys; unknown keys are ignored."""
        selected = Variables()
        for key in keys:
            variable = self.find(key)
            if variable is not None:
                selected.insert_or_replace(variable)
        return selected

    def merge(self, source: Mapping[str, Variable]) -> None:
        """Add all variables of source, replacing existing ones on a name clash."""
        for variable in source.values():
            self.insert_or_replace(variable)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Variables:
        return cls({key: Variable.from_dict(value) for key, value in (data or {}).items()})

    def to_dict(self) -> dict[str, Any]:
        return {key: variable.to_dict() for key, variable in self.items()}


def new_variables(*args: Variable) -> Variables:
    """Build a collection from the given variables; the first of a name wins."""
    variables = Variables()
    for variable in args:
        variables.insert(variable)
    return variables