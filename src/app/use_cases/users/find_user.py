"""FindUser Use Case"""

from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.ledger_store import LedgerStore
from .dtos import UserDTO


class FindUser:

    def __init__(self, ledger: LedgerStore):
        self.ledger = ledger

    async def execute(self, phone: Optional[str] = None, email: Optional[str] = None) -> Result[UserDTO]:
        if phone:
            user = await self.ledger.find_user_by_phone(phone)
        elif email:
            user = await self.ledger.find_user_by_email(email)
        else:
            return Return.err(Error(code="VALIDATION_ERROR", message="phone or email is required"))

        if not user:
            return Return.err(
                Error(code="USER_NOT_FOUND", message=f"No user registered for {phone or email}")
            )
        return Return.ok(UserDTO.from_entity(user))
