[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "qdelayed"
version = "0.1.0"
description = "A delayed message queue stored in a Redis sorted set"
requires-python = ">=3.10"
keywords = ["redis", "queue", "delayed", "scheduler", "sorted-set"]
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
    "Topic :: Database",
]
dependencies = [
    "redis",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
qdelayed = "qdelayed.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["qdelayed"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
