import json
from datetime import datetime, timezone

import pytest

from soarca.models.decoder import decode_validate

SCHEMA = {
    "type": "object",
    "required": ["id", "type", "spec_version", "workflow_start", "workflow"],
    "properties": {"workflow": {"type": "object"}},
}


@pytest.fixture(autouse=True)
def no_schema_url(monkeypatch):
    monkeypatch.delenv("VALIDATION_SCHEMA_URL", raising=False)


@pytest.fixture
def document():
    return {
        "type": "playbook",
        "spec_version": "cacao-2.0",
        "id": "playbook--61a6c41e-6efc-4516-a242-dfbc5c89d562",
        "name": "ssh-test",
        "created_by": "identity--1",
        "created": "2024-01-01T09:00:00.000Z",
        "modified": "2024-01-01T09:00:00.000Z",
        "workflow_start": "start--1",
        "workflow_exception": "end--1",
        "workflow": {
            "start--1": {"type": "start", "on_completion": "action--1"},
            "action--1": {
                "type": "action",
                "on_completion": "end--1",
                "agent": "agent--1",
                "targets": ["target--1"],
                "authentication_info": "auth--1",
                "step_variables": {"__step_var__": {"type": "string", "value": "x"}},
                "commands": [{"type": "ssh", "command": "ssh ls -la"}],
            },
            "end--1": {"type": "end"},
        },
        "agent_definitions": {"agent--1": {"type": "soarca", "name": "soarca-ssh"}},
        "target_definitions": {"target--1": {"type": "linux", "name": "host"}},
        "authentication_info_definitions": {"auth--1": {"type": "user-auth", "username": "user"}},
        "playbook_variables": {"__var1__": {"type": "string", "value": "testing"}},
    }


def decode(document):
    return decode_validate(json.dumps(document).encode("utf-8"), SCHEMA)


def test_step_ids_come_from_keys(document):
    playbook = decode(document)
    assert {key: step.id for key, step in playbook.workflow.items()} == {
        key: key for key in document["workflow"]
    }


def test_definition_ids_come_from_keys(document):
    playbook = decode(document)
    assert playbook.agent_definitions["agent--1"].id == "agent--1"
    assert playbook.target_definitions["target--1"].id == "target--1"
    assert playbook.authentication_info_definitions["auth--1"].id == "auth--1"


def test_variable_names_come_from_keys(document):
    playbook = decode(document)
    variable = playbook.playbook_variables["__var1__"]
    assert variable.name == "__var1__"
    assert variable.value == "testing"
    assert playbook.workflow["action--1"].step_variables["__step_var__"].name == "__step_var__"


def test_fields_are_decoded(document):
    playbook = decode(document)
    assert playbook.id == document["id"]
    assert playbook.workflow["action--1"].commands[0].command == "ssh ls -la"
    assert playbook.created == datetime(2024, 1, 1, 9, tzinfo=timezone.utc)


def test_string_input(document):
    playbook = decode_validate(json.dumps(document), SCHEMA)
    assert playbook.name == document["name"]


def test_schema_failure_gives_none(document):
    del document["workflow_start"]
    assert decode(document) is None


def test_cacao_v1_gives_none(document):
    document["spec_version"] = "cacao-1.0"
    assert decode(document) is None


def test_malformed_json_gives_none():
    assert decode_validate(b"{not json", SCHEMA) is None


def test_loop_gives_none(document):
    document["workflow"]["action--1"]["on_completion"] = "start--1"
    assert decode(document) is None


def test_missing_agent_gives_none(document):
    document["agent_definitions"] = {}
    assert decode(document) is None


def test_missing_schema_gives_none(document):
    assert decode_validate(json.dumps(document)) is None