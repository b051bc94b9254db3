"""User API Routes"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import ClientError
from src.api.schemas.user_request import RegisterUserRequestSchema
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.users import FindUser, RegisterUser, RegisterUserCommandDTO, UserDTO
from src.depends import build_ledger, get_session

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "/register",
    response_model=UserDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid email or phone number"},
        409: {
            "description": "Phone or email already registered",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "message": "User already exists",
                        "error": {"code": "USER_ALREADY_EXISTS", "message": "User already exists"}
                    }
                }
            }
        }
    }
)
async def register_user(
    request: RegisterUserRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Register a user by email and phone.

    **Request body:**
    - `email` (required): Email address, unique
    - `phone` (required): Phone number in 254XXXXXXXXX format, unique
    """
    use_case = RegisterUser(SqlAlchemyUnitOfWork(session), build_ledger(session))
    result = await use_case.execute(RegisterUserCommandDTO(email=request.email, phone=request.phone))

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/phone/{phone}", response_model=UserDTO)
async def get_user_by_phone(phone: str, session: AsyncSession = Depends(get_session)):
    result = await FindUser(build_ledger(session)).execute(phone=phone)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/email/{email}", response_model=UserDTO)
async def get_user_by_email(email: str, session: AsyncSession = Depends(get_session)):
    result = await FindUser(build_ledger(session)).execute(email=email)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
