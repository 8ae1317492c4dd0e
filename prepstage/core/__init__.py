# prepstage/core/__init__.py
from .params import Params, EmptyParams
from .hydration import Formats, HydrationMixin, default_formats
from .base import BasePreparator, BaseDataSource

__all__ = [
    "Params", "EmptyParams",
    "Formats", "HydrationMixin", "default_formats",
    "BasePreparator", "BaseDataSource",
]
