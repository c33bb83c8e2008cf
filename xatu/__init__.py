"""Tight-binding systems, exciton pair bases, potentials and exciton result analysis."""

__version__ = "1.3.1"

__all__ = [
    "davidson",
    "exciton",
    "interactions",
    "result",
    "system_configuration",
    "system_tb",
    "utils",
    "wannier90",
]