"""Receipt PDF Service Interface

Defines the contract for rendering payment receipts.
"""

from abc import ABC, abstractmethod
from src.app.use_cases.payments.dtos import ReceiptDTO


class ReceiptPdfService(ABC):
    """
    Service interface for PDF generation

    Provides PDF rendering of payment receipts.
    """

    @abstractmethod
    def generate_receipt(
        self,
        receipt: ReceiptDTO,
        company_name: str = "Spawiko Payments",
    ) -> bytes:
        """
        Generate a payment receipt PDF

        Args:
            receipt: Receipt projection of a payment
            company_name: Name printed in the receipt header

        Returns:
            PDF document as bytes
        """
        pass
