"""User use cases"""
from .register_user import RegisterUser
from .find_user import FindUser
from .dtos import RegisterUserCommandDTO, UserDTO

__all__ = [
    "RegisterUser",
    "FindUser",
    "RegisterUserCommandDTO",
    "UserDTO",
]
