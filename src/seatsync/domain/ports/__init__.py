"""Domain port definitions for adapters."""

from __future__ import annotations

from .seats import (
    DEFAULT_PAGE_SIZE,
    MAINTAINER_ROLE,
    AssignmentResult,
    MemberSource,
    OrganizationDirectory,
    PageResult,
    PaginationLimitError,
    SeatAssigner,
    SeatRevoker,
    SeatService,
    SeatServiceError,
    SeatSource,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAINTAINER_ROLE",
    "AssignmentResult",
    "MemberSource",
    "OrganizationDirectory",
    "PageResult",
    "PaginationLimitError",
    "SeatAssigner",
    "SeatRevoker",
    "SeatService",
    "SeatServiceError",
    "SeatSource",
]
