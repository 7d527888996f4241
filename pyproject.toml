[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "memtxn"
version = "0.1.0"
description = "In-memory hash stores, allocators, lock and version caches, and benchmark table loaders for distributed transaction experiments"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "transactions",
    "hash-store",
    "benchmark",
    "tatp",
    "smallbank",
    "key-value",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["memtxn"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
