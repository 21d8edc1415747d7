# soarca

Building blocks for a security orchestrator that runs CACAO v2 playbooks:

- **Models** (`soarca.models.cacao`, `soarca.models.cacao_types`,
  `soarca.models.variables`) for playbooks, workflow steps, agents, targets,
  authentication information, extension definitions, data markings, commands
  and variables, each with `from_dict` and `to_dict`.
- **Validation** of incoming playbooks: a JSON Schema check
  (`soarca.models.schema`) and a workflow safety check
  (`soarca.models.validation`).
- **Decoding** of playbook JSON into model objects (`soarca.models.decoder`).
- **Reserved HTTP endpoints** on Flask for course-of-action, operator and step
  management (`soarca.routes.placeholders`).

## Variables

```python
from soarca.models.variables import Variable, new_variables

variables = new_variables(
    Variable(type="string", name="__host__", value="10.0.0.1"),
)
print(variables.interpolate("ping __host__:value"))   # ping 10.0.0.1

variables.insert_or_replace(Variable(type="string", name="__host__", value="10.0.0.2"))
subset = variables.select(["__host__", "__unknown__"])  # unknown names are ignored
```

`Variables` is a `dict` keyed by variable name. `insert` and `insert_range`
keep an existing entry on a name clash; `insert_or_replace` and `merge`
overwrite it. `find` returns the variable or `None`. `new_variables` keeps the
first variable of each name.

## Decoding a playbook

Without any validation:

```python
from soarca.models.cacao import decode

playbook = decode(raw_json)   # None if the JSON cannot be read as a playbook
```

Each workflow step, agent, target and authentication entry gets its map key as
its `id`.

With schema and workflow validation:

```python
from soarca.models.decoder import decode_validate

with open("playbook.json", "rb") as handle:
    playbook = decode_validate(handle.read(), schema)
```

`schema` is the CACAO v2 playbook JSON Schema to check against. If the
environment variable `VALIDATION_SCHEMA_URL` is set, the schema is fetched
from that URL instead. `decode_validate` returns `None` (and logs the reason)
when the JSON is malformed, is a CACAO v1 playbook, has an unsupported
`spec_version`, fails the schema, or fails the workflow check. On success, map
keys also become the `name` of playbook and step variables.

The schema check alone is `soarca.models.schema.is_valid_cacao_json(data,
schema)`, which returns the parsed JSON object or raises `ValidationError`
(a `ValueError`).

## Workflow check

```python
from soarca.models.validation import ValidationError, is_safe_cacao_workflow

try:
    is_safe_cacao_workflow(playbook)
except ValidationError as err:
    print(err)
```

It checks that the start step exists; that every step referenced by
`on_completion`, `on_success`, `on_failure`, `on_true`, `on_false`,
`next_steps` and `cases` exists; that every agent, target and authentication
entry a step refers to is defined; that contact e-mail addresses of those
agents and targets parse; and that every branch reaches an `end` step without
looping. Variables are not checked.

## Timestamps

`soarca.models.cacao_types.parse_time` reads RFC 3339 timestamps (a missing
value gives the zero time, year 1 UTC) and `format_time` writes them back with
trailing fraction zeros trimmed and `Z` for UTC.

## Reserved endpoints

```python
from flask import Flask

from soarca.routes.placeholders import coa_routes, operator_routes, step_routes

app = Flask(__name__)
coa_routes(app)
operator_routes(app)
step_routes(app)
```

| Method | Path | Response |
| --- | --- | --- |
| GET | `/coa/` | JSON string `"helloworld from /coa"` |
| POST / PUT / DELETE | `/coa/<coa_id>` | logs the id, empty 200 |
| POST | `/operator/coa/<coa_id>` | JSON string `"helloworld from /operator"` |
| GET | `/step/` | JSON string `"helloworld from /step"` |

## What this package does not do

It does not store playbooks, execute them, or report on executions. There are
no endpoints for playbook storage, triggering, execution reports or service
status, no execution-state or report models, no messages for external
capability integrations, and no command to start a server: to serve the
reserved endpoints, register them on your own Flask application as above.