# prepstage/controller/__init__.py
from .preparator import (
    LocalPreparator,
    ParallelPreparator,
    IdentityPreparator,
    estimate_size,
)

__all__ = [
    "LocalPreparator",
    "ParallelPreparator",
    "IdentityPreparator",
    "estimate_size",
]
