[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kater"
version = "0.3.1"
description = "Predicates, labelled NFAs and NFA simplification passes for weak memory model metatheory"
requires-python = ">=3.10"
dependencies = []
keywords = ["automata", "nfa", "dfa", "subset construction", "weak memory models"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kater"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
