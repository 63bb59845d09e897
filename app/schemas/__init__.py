"""
app/schemas package marker.
"""

from app.schemas.clients import ClientTagsRequest, ClientTagsResponse
from app.schemas.metrics import (
    CompareRequest,
    CompareResponse,
    DashboardResponse,
    KPIComputeRequest,
    KPIComputeResponse,
    KpiTargetsRequest,
    KpiTargetsResponse,
)

__all__ = [
    "ClientTagsRequest",
    "ClientTagsResponse",
    "CompareRequest",
    "CompareResponse",
    "DashboardResponse",
    "KPIComputeRequest",
    "KPIComputeResponse",
    "KpiTargetsRequest",
    "KpiTargetsResponse",
]
