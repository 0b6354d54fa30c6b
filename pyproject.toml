[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "contractsim"
version = "0.1.0"
description = "In-memory simulation of small on-chain contracts: escrow, quadratic funding, a to-do list and a token pot"
requires-python = ">=3.10"
dependencies = []
keywords = ["smart-contracts", "escrow", "quadratic-funding", "simulation", "blockchain"]
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
    "Topic :: Office/Business :: Financial",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["contractsim"]

[tool.pytest.ini_options]
addopts = "-ra"
