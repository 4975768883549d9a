[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "starknode"
version = "0.1.0"
description = "Terminal dashboard and helpers for monitoring local Ethereum and Starknet nodes"
requires-python = ">=3.10"
keywords = [
    "ethereum",
    "starknet",
    "node",
    "monitoring",
    "geth",
    "reth",
    "lighthouse",
    "prysm",
    "juno",
    "dashboard",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Console :: Curses",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "pyyaml>=6.0",
    "python-dotenv>=1.0",
    "psutil>=5.9",
    "requests>=2.31",
    "urwid>=2.1",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.24",
]

[project.scripts]
starknode-monitor = "starknode.monitoring.dashboard:main"

[tool.hatch.build.targets.wheel]
packages = ["starknode"]

[tool.hatch.build.targets.sdist]
include = ["starknode", "tests", "pyproject.toml", "README.md"]

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
ignore_missing_imports = true
