[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "timberjack"
version = "0.1.0"
description = "A rolling file writer for logs with size-based, interval-based and clock-based rotation, compression and cleanup."
requires-python = ">=3.10"
dependencies = [
    "zstandard",
]
keywords = ["logging", "log rotation", "rolling file", "gzip", "zstd"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["timberjack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
