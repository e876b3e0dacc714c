[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "prestamos"
version = "0.1.0"
description = "Library lending service over a named pipe: loans, renewals and returns of book copies"
requires-python = ">=3.10"
dependencies = []
keywords = ["library", "lending", "fifo", "named-pipe", "books"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
prestamos-receptor = "prestamos.receptor:main"
prestamos-solicitante = "prestamos.solicitante:main"

[tool.hatch.build.targets.wheel]
packages = ["prestamos"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
