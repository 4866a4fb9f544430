from .users import (
    ApiErrorBody,
    StatusUpdateRequest,
    StatusUpdateResponse,
    UserGroupSchema,
    UserSchema,
    UsersListResponse,
    UsersPage,
)

__all__ = [
    "ApiErrorBody",
    "StatusUpdateRequest",
    "StatusUpdateResponse",
    "UserGroupSchema",
    "UserSchema",
    "UsersListResponse",
    "UsersPage",
]
