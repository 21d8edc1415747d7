"""Structural safety checks for CACAO playbook workflows."""

from __future__ import annotations

import logging
from email.utils import parseaddr

from soarca.models.cacao import Playbook, Step
from soarca.models.cacao_types import STEP_TYPE_END, AgentTarget

log = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when a playbook is malformed or unsafe to execute."""


def is_safe_cacao_workflow(playbook: Playbook) -> Playbook:
    """Check that a playbook's workflow can be executed safely; return the playbook.

    Every referenced step, agent, target and authentication object must exist,
    contact e-mail addresses must parse, and every branch must reach an end
    step without looping. Variables are not checked.

    Raises ValidationError on the first problem found.
    """
    if not playbook.workflow_exception:
        log.warning("workflow exception not implemented")

    start = playbook.workflow_start
    if start not in playbook.workflow:
        raise ValidationError(f"start step {start} not found in workflow")

    for step in playbook.workflow.values():
        try:
            _check_step(playbook, step)
        except ValidationError as error:
            log.error("%s", error)
            raise

    _all_branches_end(playbook.workflow, start, frozenset())
    return playbook


def _branches(step: Step) -> list[str]:
    """Ids of all steps that may follow the given one, without duplicates."""
    singles = (
        step.on_completion,
        step.on_success,
        step.on_failure,
        step.on_true,
        step.on_false,
    )
    ids = [step_id for step_id in singles if step_id]
    ids.extend(step.next_steps)
    ids.extend(step.cases.values())
    return list(dict.fromkeys(ids))


def _check_step(playbook: Playbook, step: Step) -> None:
    _check_sub_steps_exist(playbook.workflow, step)
    _check_agent_targets(playbook, step)
    _check_auth_info_exists(playbook, step)


def _check_sub_steps_exist(workflow: dict[str, Step], step: Step) -> None:
    for step_id in _branches(step):
        if step_id and step_id not in workflow:
            raise ValidationError(f"step {step_id} does not exist")


def _invalid_email(agent_target: AgentTarget) -> str | None:
    """Return the first contact e-mail address that does not parse, if any."""
    for email in agent_target.contact.email.values():
        if not _is_valid_email(email):
            return email
    return None


def _is_valid_email(text: str) -> bool:
    _, address = parseaddr(text)
    if not address or address.count("@") != 1 or any(char.isspace() for char in address):
        return False
    local, domain = address.split("@")
    return bool(local) and bool(domain)


def _check_agent_targets(playbook: Playbook, step: Step) -> None:
    if step.agent:
        agent = playbook.agent_definitions.get(step.agent)
        if agent is None:
            raise ValidationError(f"agent {step.agent} not found in agent_definitions")
        email = _invalid_email(agent)
        if email is not None:
            raise ValidationError(f"agent {step.agent} has invalid email address: {email}")

    for target_id in step.targets:
        target = playbook.target_definitions.get(target_id)
        if target is None:
            raise ValidationError(f"target {target_id} not found in target_definitions")
        email = _invalid_email(target)
        if email is not None:
            raise ValidationError(f"target {target_id} has invalid email address: {email}")


def _check_auth_info_exists(playbook: Playbook, step: Step) -> None:
    if step.authentication_info and (
        step.authentication_info not in playbook.authentication_info_definitions
    ):
        raise ValidationError(
            f"authentication_info {step.authentication_info} "
            "not found in authentication_info_definitions"
        )


def _all_branches_end(workflow: dict[str, Step], step_id: str, branch: frozenset[str]) -> None:
    """Walk every branch depth first, failing on loops and on dead ends."""
    branch = branch | {step_id}
    step = workflow[step_id] if step_id in workflow else Step()
    children = _branches(step)

    if not children:
        if step.type == STEP_TYPE_END:
            return
        raise ValidationError("step with no branches is not an end step")

    for child in children:
        if child in branch:
            sequence = sorted(branch | {f"infinite#{child}"})
            raise ValidationError(f"workflow seems to loop on branch sequence {sequence}")
        _all_branches_end(workflow, child, branch)