[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "soarca"
version = "0.1.0"
description = "CACAO v2 playbook models, decoding and workflow validation for a security orchestrator"
requires-python = ">=3.10"
keywords = ["cacao", "playbook", "soar", "orchestration", "security", "validation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Information Technology",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: Flask",
    "Topic :: Security",
]
dependencies = [
    "flask>=2.2",
    "jsonschema>=4.18",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["soarca"]

[tool.hatch.build.targets.sdist]
include = ["soarca", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
