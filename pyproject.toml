[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trajopt_core"
version = "0.1.0"
description = "Building blocks for trajectory optimization: a block penta-diagonal solver, solver parameters, problem definitions, optimizer state and a lightweight profiler."
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "trajectory optimization",
    "penta-diagonal",
    "Thomas algorithm",
    "linear algebra",
    "profiling",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["trajopt_core"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
