from __future__ import annotations

from typing import TYPE_CHECKING

__all__ = [
    "__version__",
    "Diagnostics",
    "ExportConfig",
    "OrderedResult",
    "WorkItem",
    "resolve_plan",
]

__version__ = "0.1.0"

if TYPE_CHECKING:
    from .config import ExportConfig
    from .events import Diagnostics
    from .models import WorkItem
    from .pipeline import OrderedResult, resolve_plan


def __getattr__(name: str):
    if name == "Diagnostics":
        from .events import Diagnostics

        return Diagnostics
    if name == "ExportConfig":
        from .config import ExportConfig

        return ExportConfig
    if name == "WorkItem":
        from .models import WorkItem

        return WorkItem
    if name in {"OrderedResult", "resolve_plan"}:
        from .pipeline import OrderedResult, resolve_plan

        return {
            "OrderedResult": OrderedResult,
            "resolve_plan": resolve_plan,
        }[name]
    raise AttributeError(f"module 'planexport' has no attribute {name!r}")
