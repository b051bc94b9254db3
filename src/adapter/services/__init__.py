from .unit_of_work import SqlAlchemyUnitOfWork
from .gateway_client import SpawikoGatewayClient
from .receipt_pdf_service import ReportLabReceiptPdfService

__all__ = [
    "SqlAlchemyUnitOfWork",
    "SpawikoGatewayClient",
    "ReportLabReceiptPdfService",
]
