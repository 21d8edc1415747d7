import logging

import pytest

from soarca.models.cacao import Playbook, Step
from soarca.models.cacao_types import AgentTarget, AuthenticationInformation, Contact
from soarca.models.validation import ValidationError, is_safe_cacao_workflow

START = "start--1"
ACTION = "action--1"
END = "end--1"


def make_playbook() -> Playbook:
    workflow = {
        START: Step(type="start", id=START, on_completion=ACTION),
        ACTION: Step(
            type="action",
            id=ACTION,
            on_completion=END,
            agent="agent--1",
            targets=["target--1"],
            authentication_info="auth--1",
        ),
        END: Step(type="end", id=END),
    }
    return Playbook(
        id="playbook--1",
        workflow_start=START,
        workflow_exception=END,
        workflow=workflow,
        agent_definitions={"agent--1": AgentTarget(type="soarca", name="soarca-ssh")},
        target_definitions={"target--1": AgentTarget(type="linux", name="host")},
        authentication_info_definitions={"auth--1": AuthenticationInformation(type="user-auth")},
    )


def test_valid_playbook_is_returned():
    playbook = make_playbook()
    assert is_safe_cacao_workflow(playbook) is playbook


def test_missing_start_step():
    playbook = make_playbook()
    playbook.workflow_start = "start--missing"
    with pytest.raises(ValidationError, match="start step start--missing not found"):
        is_safe_cacao_workflow(playbook)


@pytest.mark.parametrize("attribute", ["on_completion", "on_success", "on_failure", "on_true", "on_false"])
def test_dangling_step_reference(attribute):
    playbook = make_playbook()
    setattr(playbook.workflow[ACTION], attribute, "end--missing")
    with pytest.raises(ValidationError, match="step end--missing does not exist"):
        is_safe_cacao_workflow(playbook)


def test_dangling_next_step():
    playbook = make_playbook()
    playbook.workflow[ACTION].next_steps = [END, "step--missing"]
    with pytest.raises(ValidationError, match="step step--missing does not exist"):
        is_safe_cacao_workflow(playbook)


def test_dangling_case():
    playbook = make_playbook()
    playbook.workflow[ACTION].cases = {"a": END, "b": "case--missing"}
    with pytest.raises(ValidationError, match="step case--missing does not exist"):
        is_safe_cacao_workflow(playbook)


def test_missing_agent():
    playbook = make_playbook()
    playbook.agent_definitions.clear()
    with pytest.raises(ValidationError, match="agent agent--1"):
        is_safe_cacao_workflow(playbook)


def test_missing_target():
    playbook = make_playbook()
    playbook.target_definitions.clear()
    with pytest.raises(ValidationError, match="target target--1"):
        is_safe_cacao_workflow(playbook)


def test_missing_authentication_info():
    playbook = make_playbook()
    playbook.authentication_info_definitions.clear()
    with pytest.raises(ValidationError, match="auth--1"):
        is_safe_cacao_workflow(playbook)


def test_invalid_target_email():
    playbook = make_playbook()
    playbook.target_definitions["target--1"].contact = Contact(email={"work": "not an address"})
    with pytest.raises(ValidationError, match="invalid email address: not an address"):
        is_safe_cacao_workflow(playbook)


def test_invalid_agent_email():
    playbook = make_playbook()
    playbook.agent_definitions["agent--1"].contact = Contact(email={"work": "nobody@"})
    with pytest.raises(ValidationError, match="agent agent--1 has invalid email"):
        is_safe_cacao_workflow(playbook)


def test_valid_email_with_display_name():
    playbook = make_playbook()
    playbook.target_definitions["target--1"].contact = Contact(
        email={"work": "SOC <soc@example.com>", "home": "soc@example.com"}
    )
    assert is_safe_cacao_workflow(playbook) is playbook


def test_loop_is_detected():
    playbook = make_playbook()
    playbook.workflow[ACTION].on_completion = START
    with pytest.raises(ValidationError, match="loop") as info:
        is_safe_cacao_workflow(playbook)
    assert f"infinite#{START}" in str(info.value)


def test_leaf_that_is_not_end_step():
    playbook = make_playbook()
    playbook.workflow[ACTION].on_completion = ""
    with pytest.raises(ValidationError, match="not an end step"):
        is_safe_cacao_workflow(playbook)


def test_empty_next_step_id_is_a_dead_end():
    playbook = make_playbook()
    playbook.workflow[ACTION].on_completion = ""
    playbook.workflow[ACTION].next_steps = [""]
    with pytest.raises(ValidationError, match="not an end step"):
        is_safe_cacao_workflow(playbook)


def test_if_condition_with_both_branches_ending():
    playbook = make_playbook()
    playbook.workflow[ACTION] = Step(type="if-condition", id=ACTION, condition="a = a", on_true=END, on_false=END)
    assert is_safe_cacao_workflow(playbook) is playbook


def test_parallel_branches_joining_is_not_a_loop():
    playbook = make_playbook()
    playbook.workflow[START].on_completion = "parallel--1"
    playbook.workflow["parallel--1"] = Step(type="parallel", id="parallel--1", next_steps=[ACTION, "action--2"])
    playbook.workflow["action--2"] = Step(type="action", id="action--2", on_completion=END)
    assert is_safe_cacao_workflow(playbook) is playbook


def test_missing_workflow_exception_only_warns(caplog):
    playbook = make_playbook()
    playbook.workflow_exception = ""
    with caplog.at_level(logging.WARNING):
        result = is_safe_cacao_workflow(playbook)
    assert result is playbook
    assert "workflow exception not implemented" in caplog.text