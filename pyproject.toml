[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bafios"
version = "0.1.0"
description = "Hobby operating system components in pure Python: a FAT16 driver over an in-memory disk, a window composer, a heap allocator and a key/value database format"
requires-python = ">=3.10"
dependencies = []
keywords = ["fat16", "filesystem", "composer", "allocator", "keyboard", "database"]
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
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["bafios"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
