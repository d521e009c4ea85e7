[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ssbkit"
version = "0.4.0"
description = "Secure Scuttlebutt toolkit: identities, signed feed messages, private boxes, discovery, MUXRPC framing and API calls"
requires-python = ">=3.10"
dependencies = [
    "pynacl",
    "psutil",
]
keywords = [
    "ssb",
    "scuttlebutt",
    "secure-scuttlebutt",
    "muxrpc",
    "p2p",
    "ed25519",
    "feed",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: File Sharing",
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["ssbkit"]

[tool.hatch.build.targets.sdist]
include = [
    "ssbkit",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
