"""RegisterUser Use Case

Registers a wallet owner. Email and phone must both be unused.
"""

import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from libs.result import Result, Return, Error
from src.app.services.ledger_store import LedgerStore
from src.app.services.unit_of_work import UnitOfWork
from .dtos import RegisterUserCommandDTO, UserDTO

logger = logging.getLogger(__name__)


class RegisterUser:
    """
    Use Case: Register a user

    Errors:
        VALIDATION_ERROR: phone not 254XXXXXXXXX, or malformed email
        USER_ALREADY_EXISTS: email or phone already registered
    """

    def __init__(self, uow: UnitOfWork, ledger: LedgerStore):
        self.uow = uow
        self.ledger = ledger

    async def execute(self, command: RegisterUserCommandDTO) -> Result[UserDTO]:
        try:
            result = await self.ledger.register_user(command.email, command.phone)
            if result.is_err():
                await self.uow.rollback()
                return result

            user = UserDTO.from_entity(result.value)
            await self.uow.commit()
        except IntegrityError as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="USER_ALREADY_EXISTS",
                    message="A user with this email or phone is already registered",
                    reason=str(e),
                )
            )
        except SQLAlchemyError as e:
            await self.uow.rollback()
            logger.error(f"Failed to register user {command.phone}: {e}")
            return Return.err(
                Error(code="STORAGE_ERROR", message="Failed to register user", reason=str(e))
            )

        logger.info(f"Registered user {user.id} ({user.phone})")
        return Return.ok(user)
