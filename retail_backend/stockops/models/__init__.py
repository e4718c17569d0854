from .lorry_return import LorryReturn
from .operation import (
    ConversionEntry,
    OperationReversal,
    StockOperation,
    StockOperationItem,
)
from .transfer import TransferRequest, TransferRequestConversion

__all__ = [
    "ConversionEntry",
    "LorryReturn",
    "OperationReversal",
    "StockOperation",
    "StockOperationItem",
    "TransferRequest",
    "TransferRequestConversion",
]
