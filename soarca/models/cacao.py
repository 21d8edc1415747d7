"""CACAO playbooks and the workflow steps they are made of."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from soarca.models.cacao_types import (
    ZERO_TIME,
    AgentTarget,
    AuthenticationInformation,
    Command,
    DataMarking,
    ExtensionDefinition,
    ExternalReference,
    format_time,
    parse_time,
)
from soarca.models.variables import Variables


def _non_empty(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value}


def _references(data: Mapping[str, Any]) -> list[ExternalReference]:
    return [ExternalReference.from_dict(item) for item in data.get("external_references") or []]


def _mapping(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise TypeError(f"{key} must be an object")
    return value


@dataclass
class Step:
    """One step of a playbook workflow."""

    type: str = ""
    id: str = ""
    name: str = ""
    description: str = ""
    external_references: list[ExternalReference] = field(default_factory=list)
    delay: int = 0
    timeout: int = 0
    step_variables: Variables = field(default_factory=Variables)
    owner: str = ""
    on_completion: str = ""
    on_success: str = ""
    on_failure: str = ""
    commands: list[Command] = field(default_factory=list)
    agent: str = ""
    targets: list[str] = field(default_factory=list)
    in_args: list[str] = field(default_factory=list)
    out_args: list[str] = field(default_factory=list)
    playbook_id: str = ""
    playbook_version: str = ""
    next_steps: list[str] = field(default_factory=list)
    condition: str = ""
    on_true: str = ""
    on_false: str = ""
    switch: str = ""
    cases: dict[str, str] = field(default_factory=dict)
    authentication_info: str = ""
    step_extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Step:
        return cls(
            type=data.get("type") or "",
            id=data.get("id") or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
            external_references=_references(data),
            delay=int(data.get("delay") or 0),
            timeout=int(data.get("timeout") or 0),
            step_variables=Variables.from_dict(_mapping(data, "step_variables")),
            owner=data.get("owner") or "",
            on_completion=data.get("on_completion") or "",
            on_success=data.get("on_success") or "",
            on_failure=data.get("on_failure") or "",
            commands=[Command.from_dict(item) for item in data.get("commands") or []],
            agent=data.get("agent") or "",
            targets=list(data.get("targets") or []),
            in_args=list(data.get("in_args") or []),
            out_args=list(data.get("out_args") or []),
            playbook_id=data.get("playbook_id") or "",
            playbook_version=data.get("playbook_version") or "",
            next_steps=list(data.get("next_steps") or []),
            condition=data.get("condition") or "",
            on_true=data.get("on_true") or "",
            on_false=data.get("on_false") or "",
            switch=data.get("switch") or "",
            cases=dict(_mapping(data, "cases")),
            authentication_info=data.get("authentication_info") or "",
            step_extensions=dict(_mapping(data, "step_extensions")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            **_non_empty(
                {
                    "id": self.id,
                    "name": self.name,
                    "description": self.description,
                    "external_references": [ref.to_dict() for ref in self.external_references],
                    "delay": self.delay,
                    "timeout": self.timeout,
                    "step_variables": self.step_variables.to_dict(),
                    "owner": self.owner,
                    "on_completion": self.on_completion,
                    "on_success": self.on_success,
                    "on_failure": self.on_failure,
                    "commands": [command.to_dict() for command in self.commands],
                    "agent": self.agent,
                    "targets": list(self.targets),
                    "in_args": list(self.in_args),
                    "out_args": list(self.out_args),
                    "playbook_id": self.playbook_id,
                    "playbook_version": self.playbook_version,
                    "next_steps": list(self.next_steps),
                    "condition": self.condition,
                    "on_true": self.on_true,
                    "on_false": self.on_false,
                    "switch": self.switch,
                    "cases": dict(self.cases),
                    "authentication_info": self.authentication_info,
                    "step_extensions": dict(self.step_extensions),
                }
            ),
        }


@dataclass
class Playbook:
    """A CACAO v2 playbook."""

    id: str = ""
    type: str = ""
    spec_version: str = ""
    name: str = ""
    description: str = ""
    playbook_types: list[str] = field(default_factory=list)
    created_by: str = ""
    created: datetime = ZERO_TIME
    modified: datetime = ZERO_TIME
    valid_from: datetime = ZERO_TIME
    valid_until: datetime = ZERO_TIME
    derived_from: list[str] = field(default_factory=list)
    priority: int = 0
    severity: int = 0
    impact: int = 0
    labels: list[str] = field(default_factory=list)
    external_references: list[ExternalReference] = field(default_factory=list)
    markings: list[str] = field(default_factory=list)
    workflow_start: str = ""
    workflow_exception: str = ""
    workflow: dict[str, Step] = field(default_factory=dict)
    data_marking_definitions: dict[str, DataMarking] = field(default_factory=dict)
    authentication_info_definitions: dict[str, AuthenticationInformation] = field(
        default_factory=dict
    )
    agent_definitions: dict[str, AgentTarget] = field(default_factory=dict)
    target_definitions: dict[str, AgentTarget] = field(default_factory=dict)
    extension_definitions: dict[str, ExtensionDefinition] = field(default_factory=dict)
    playbook_variables: Variables = field(default_factory=Variables)
    playbook_extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Playbook:
        if not isinstance(data, Mapping):
            raise TypeError("a playbook must be a JSON object")
        return cls(
            id=data.get("id") or "",
            type=data.get("type") or "",
            spec_version=data.get("spec_version") or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
            playbook_types=list(data.get("playbook_types") or []),
            created_by=data.get("created_by") or "",
            created=parse_time(data.get("created")),
            modified=parse_time(data.get("modified")),
            valid_from=parse_time(data.get("valid_from")),
            valid_until=parse_time(data.get("valid_until")),
            derived_from=list(data.get("derived_from") or []),
            priority=int(data.get("priority") or 0),
            severity=int(data.get("severity") or 0),
            impact=int(data.get("impact") or 0),
            labels=list(data.get("labels") or []),
            external_references=_references(data),
            markings=list(data.get("markings") or []),
            workflow_start=data.get("workflow_start") or "",
            workflow_exception=data.get("workflow_exception") or "",
            workflow={
                key: Step.from_dict(value) for key, value in _mapping(data, "workflow").items()
            },
            data_marking_definitions={
                key: DataMarking.from_dict(value)
                for key, value in _mapping(data, "data_marking_definitions").items()
            },
            authentication_info_definitions={
                key: AuthenticationInformation.from_dict(value)
                for key, value in _mapping(data, "authentication_info_definitions").items()
            },
            agent_definitions={
                key: AgentTarget.from_dict(value)
                for key, value in _mapping(data, "agent_definitions").items()
            },
            target_definitions={
                key: AgentTarget.from_dict(value)
                for key, value in _mapping(data, "target_definitions").items()
            },
            extension_definitions={
                key: ExtensionDefinition.from_dict(value)
                for key, value in _mapping(data, "extension_definitions").items()
            },
            playbook_variables=Variables.from_dict(_mapping(data, "playbook_variables")),
            playbook_extensions=dict(_mapping(data, "playbook_extensions")),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "spec_version": self.spec_version,
            "name": self.name,
        }
        result.update(
            _non_empty(
                {"description": self.description, "playbook_types": list(self.playbook_types)}
            )
        )
        result.update(
            created_by=self.created_by,
            created=format_time(self.created),
            modified=format_time(self.modified),
            valid_from=format_time(self.valid_from),
            valid_until=format_time(self.valid_until),
        )
        result.update(
            _non_empty(
                {
                    "derived_from": list(self.derived_from),
                    "priority": self.priority,
                    "severity": self.severity,
                    "impact": self.impact,
                    "labels": list(self.labels),
                    "external_references": [ref.to_dict() for ref in self.external_references],
                    "markings": list(self.markings),
                }
            )
        )
        result["workflow_start"] = self.workflow_start
        result.update(_non_empty({"workflow_exception": self.workflow_exception}))
        result["workflow"] = {key: step.to_dict() for key, step in self.workflow.items()}
        result.update(
            _non_empty(
                {
                    "data_marking_definitions": {
                        key: item.to_dict() for key, item in self.data_marking_definitions.items()
                    },
                    "authentication_info_definitions": {
                        key: item.to_dict()
                        for key, item in self.authentication_info_definitions.items()
                    },
                    "agent_definitions": {
                        key: item.to_dict() for key, item in self.agent_definitions.items()
                    },
                    "target_definitions": {
                        key: item.to_dict() for key, item in self.target_definitions.items()
                    },
                    "extension_definitions": {
                        key: item.to_dict() for key, item in self.extension_definitions.items()
                    },
                    "playbook_variables": self.playbook_variables.to_dict(),
                    "playbook_extensions": dict(self.playbook_extensions),
                }
            )
        )
        return result


def new_playbook() -> Playbook:
    """Return an empty playbook with all definition maps in place."""
    return Playbook()


def decode(data: bytes | str) -> Playbook | None:
    """Decode playbook JSON without schema validation; None if it cannot be read.

    The keys of the workflow, target, agent and authentication maps become
    the ids of the objects they hold.
    """
    try:
        playbook = Playbook.from_dict(json.loads(data))
    except (ValueError, TypeError, AttributeError):
        return None

    for key, step in playbook.workflow.items():
        step.id = key
    for key, target in playbook.target_definitions.items():
        target.id = key
    for key, agent in playbook.agent_definitions.items():
        agent.id = key
    for key, auth in playbook.authentication_info_definitions.items():
        auth.id = key
    return playbook