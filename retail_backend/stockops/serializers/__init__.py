from .commands import (
    LorryReturnCommandSerializer,
    OperationCommandSerializer,
    PreviewCommandSerializer,
    ReportQuerySerializer,
    ReversalCommandSerializer,
    TransferApprovalSerializer,
    TransferDeclineSerializer,
    TransferRequestCommandSerializer,
)
from .operation import (
    LorryReturnSerializer,
    StockOperationSerializer,
    TransferRequestSerializer,
)

__all__ = [
    "LorryReturnCommandSerializer",
    "LorryReturnSerializer",
    "OperationCommandSerializer",
    "PreviewCommandSerializer",
    "ReportQuerySerializer",
    "ReversalCommandSerializer",
    "StockOperationSerializer",
    "TransferApprovalSerializer",
    "TransferDeclineSerializer",
    "TransferRequestCommandSerializer",
    "TransferRequestSerializer",
]
