[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vigilante"
version = "0.1.0"
description = "Validated configuration sections, logging, Bitcoin transaction handling and thread-safe delegation tracking for watching BTC staking delegations."
requires-python = ">=3.10"
keywords = ["bitcoin", "staking", "monitoring", "delegations", "unbonding"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["vigilante"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
