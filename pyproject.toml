[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fluxe"
version = "0.1.0"
description = "Field arithmetic, Merkle trees and state accounting for a private-payments protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["merkle", "cryptography", "zero-knowledge", "nullifier", "commitment"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fluxe"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
