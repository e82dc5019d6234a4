[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cjsh"
version = "2.1.13"
description = "Building blocks of an interactive shell: built-in commands, job control, terminal colours and file layout"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "job-control", "terminal", "ansi-colors", "builtins"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cjsh"]

[tool.pytest.ini_options]
addopts = "-ra"
