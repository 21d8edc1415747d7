"""CACAO playbook models, decoding and workflow validation for a security orchestrator."""

__version__ = "0.1.0"