[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "esprovision"
version = "0.1.0"
description = "Manage Kibana saved objects and OpenDistro alerting monitors, ISM policies, role mappings and tenants on Elasticsearch"
requires-python = ">=3.10"
keywords = ["elasticsearch", "opendistro", "kibana", "ism", "alerting", "security", "provisioning"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["esprovision"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
