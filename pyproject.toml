[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "errtrail"
version = "0.1.0"
description = "Structured, traceable application errors with IDs, severities, domains, correlation IDs and an in-memory registry."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "errors",
    "error-handling",
    "error-registry",
    "correlation-id",
    "debugging",
    "wsgi",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Logging",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
errtrail-demo = "errtrail.demo:main"

[tool.hatch.build.targets.wheel]
packages = ["errtrail"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
