[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ssestore"
version = "0.1.0"
description = "Storage building blocks for searchable encryption: counter stores, write-once vectors, async IO scheduling and cuckoo hash table lookups"
requires-python = ">=3.10"
dependencies = []
keywords = ["searchable encryption", "cuckoo hashing", "storage", "async io", "sse"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ssestore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
