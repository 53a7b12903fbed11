from __future__ import annotations

from wb.metrics.classify import classify, describe_error
from wb.metrics.collector import FinalReport, Statistics
from wb.metrics.models import (
    ClassifiedError,
    ErrorDescription,
    ErrorKind,
    FailureRecord,
    RequestDescriptor,
    ResponseRecord,
    ResultRecord,
)

__all__ = [
    "ClassifiedError",
    "ErrorDescription",
    "ErrorKind",
    "FailureRecord",
    "FinalReport",
    "RequestDescriptor",
    "ResponseRecord",
    "ResultRecord",
    "Statistics",
    "classify",
    "describe_error",
]
