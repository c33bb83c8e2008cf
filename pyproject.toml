[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xatu"
version = "1.3.1"
description = "Tight-binding systems, exciton pair bases and related observables for crystalline materials"
requires-python = ">=3.10"
keywords = ["exciton", "tight-binding", "Wannier90", "Keldysh potential", "condensed matter"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["xatu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
