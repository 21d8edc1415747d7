"""CACAO playbook models, variables, schema and workflow validation, and decoding."""