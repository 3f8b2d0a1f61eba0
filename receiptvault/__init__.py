"""Receipt extraction and cross-store price index for Lebanese retail."""

from .config import (
    DatabaseConfig,
    ExchangeConfig,
    InsightsConfig,
    OCRConfig,
    PricingConfig,
    VaultConfig,
    load_config,
)
from .extraction import ExtractedItem, ExtractedReceipt, parse_receipt
from .ocr import OCRBackend, OCRBlock, OCRPage, OCRResult, create_backend
from .pricing import (
    PriceIndexEntry,
    PriceIndexService,
    PriceObservation,
    apply_observation,
    calculate_trend,
)
from .processing import ProcessedReceipt, ReceiptProcessingError, ReceiptProcessor

__all__ = [
    "parse_receipt",
    "ExtractedReceipt",
    "ExtractedItem",
    "OCRBackend",
    "OCRBlock",
    "OCRPage",
    "OCRResult",
    "create_backend",
    "apply_observation",
    "calculate_trend",
    "PriceIndexEntry",
    "PriceIndexService",
    "PriceObservation",
    "ReceiptProcessor",
    "ProcessedReceipt",
    "ReceiptProcessingError",
    "VaultConfig",
    "OCRConfig",
    "DatabaseConfig",
    "PricingConfig",
    "ExchangeConfig",
    "InsightsConfig",
    "load_config",
]
