from __future__ import annotations


class PlanExportError(RuntimeError):
    pass


class EmptyWorkingSetError(PlanExportError, ValueError):
    def __init__(self) -> None:
        super().__init__("no work items to export: the working set is empty")


class PayloadError(PlanExportError, ValueError):
    pass


class FetchError(PlanExportError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ConfigValidationError(PlanExportError, ValueError):
    pass
