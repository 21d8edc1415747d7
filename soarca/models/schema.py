"""JSON schema validation of submitted CACAO playbooks."""

from __future__ import annotations

import json
import os
import urllib.request
from collections.abc import Mapping
from typing import Any

from jsonschema.exceptions import SchemaError
from jsonschema.exceptions import ValidationError as SchemaViolation
from jsonschema.validators import validator_for

from soarca.models.cacao_types import CACAO_VERSION_1, CACAO_VERSION_2
from soarca.models.validation import ValidationError

SCHEMA_URL_VARIABLE = "VALIDATION_SCHEMA_URL"
_FETCH_TIMEOUT = 30


def _load_remote_schema(url: str) -> Any:
    try:
        with urllib.request.urlopen(url, timeout=_FETCH_TIMEOUT) as response:
            return json.load(response)
    except (OSError, ValueError) as error:
        raise ValidationError(f"could not load schema from {url}: {error}") from error


def _validate(document: Mapping[str, Any], schema: Any) -> None:
    try:
        validator_class = validator_for(schema)
        validator_class.check_schema(schema)
        validator_class(schema).validate(document)
    except SchemaError as error:
        raise ValidationError(f"invalid schema: {error.message}") from error
    except SchemaViolation as error:
        raise ValidationError(error.message) from error


def is_valid_cacao_json(data: bytes | str, schema: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Check playbook JSON against the CACAO v2 schema and return the parsed object.

    When the VALIDATION_SCHEMA_URL environment variable is set, the schema is
    fetched from that URL; otherwise the given schema is used.

    Raises ValueError for malformed JSON and ValidationError when the
    document is not a supported, schema-conforming playbook.
    """
    document = json.loads(data)
    if not isinstance(document, dict):
        raise ValidationError("a playbook must be a JSON object")

    version = document.get("spec_version")
    if version == CACAO_VERSION_1:
        raise ValidationError(
            "you submitted a cacao v1 playbook. at the moment, soarca only supports cacao v2 playbooks"
        )
    if version != CACAO_VERSION_2:
        raise ValidationError("unsupported cacao version")

    url = os.environ.get(SCHEMA_URL_VARIABLE, "")
    if url:
        schema = _load_remote_schema(url)
    elif schema is None:
        raise ValidationError("no schema to validate cacao-2.0 playbooks against")

    _validate(document, schema)
    return document