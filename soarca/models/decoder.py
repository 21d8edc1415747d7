"""Decoding of submitted playbooks with schema and workflow validation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from soarca.models import cacao
from soarca.models.cacao import Playbook
from soarca.models.schema import is_valid_cacao_json
from soarca.models.validation import ValidationError, is_safe_cacao_workflow

log = logging.getLogger(__name__)


def _decode(data: bytes | str) -> Playbook | None:
    playbook = cacao.decode(data)
    if playbook is None:
        return None
    for key, variable in playbook.playbook_variables.items():
        variable.name = key
    for step in playbook.workflow.values():
        for key, variable in step.step_variables.items():
            variable.name = key
    return playbook


def decode_validate(
    data: bytes | str, schema: Mapping[str, Any] | None = None
) -> Playbook | None:
    """Decode playbook JSON after checking it; None if it is invalid or unsafe.

    Map keys become the ids of steps, agents, targets and authentication
    objects, and the names of playbook and step variables.
    """
    try:
        is_valid_cacao_json(data, schema)
    except ValueError as error:
        log.error("json validation failed: %s", error)
        return None

    playbook = _decode(data)
    if playbook is None:
        log.error("playbook decoding failed")
        return None

    try:
        is_safe_cacao_workflow(playbook)
    except ValidationError as error:
        log.error("%s", error)
        return None

    return playbook