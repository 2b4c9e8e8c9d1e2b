from __future__ import annotations

from .azure_devops import AzureDevOpsClient
from .base import WorkItemSource, parse_work_item, parse_work_items
from .jsonfile import JsonFileSource, read_work_items

__all__ = [
    "AzureDevOpsClient",
    "JsonFileSource",
    "WorkItemSource",
    "parse_work_item",
    "parse_work_items",
    "read_work_items",
]
