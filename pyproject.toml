[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hyperchain"
version = "0.2.0"
description = "A small proof-of-work block chain library with coin transfers, hosted pages and a framed TCP command service"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["blockchain", "proof-of-work", "wallet", "merkle", "ledger", "base62"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "cryptography",
]

[tool.hatch.build.targets.wheel]
packages = ["hyperchain"]

[tool.hatch.build.targets.sdist]
include = ["hyperchain", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
