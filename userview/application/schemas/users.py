"""Pydantic DTOs for the user collection wire format."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from userview.domain.entities import (
    CollectionResponse,
    StatusUpdateResult,
    User,
    UserGroup,
    UserStatus,
)

# Wire field name → domain attribute, for fields the server may omit.
_FIELD_MAP = {
    "name": "name",
    "email": "email",
    "status": "status",
    "groups": "groups",
}


class UserGroupSchema(BaseModel):
    """A group membership as sent by the server."""

    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(validation_alias=AliasChoices("groupId", "id", "group_id"))
    group_name: str = Field(
        default="", validation_alias=AliasChoices("groupName", "name", "group_name")
    )


class UserSchema(BaseModel):
    """A user record. Unknown fields are kept and exposed as ``extra``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: str = Field(validation_alias=AliasChoices("userId", "id", "user_id"))
    name: str = ""
    email: str = ""
    status: UserStatus = UserStatus.ACTIVE
    groups: list[UserGroupSchema] = Field(default_factory=list)

    def to_entity(self) -> User:
        return User(
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            status=self.status,
            groups=tuple(
                UserGroup(group_id=g.group_id, group_name=g.group_name)
                for g in self.groups
            ),
            extra=dict(self.model_extra or {}),
        )

    def provided_fields(self) -> frozenset[str]:
        """Domain attribute names the server actually sent."""
        names = {_FIELD_MAP[n] for n in self.model_fields_set if n in _FIELD_MAP}
        if self.model_extra:
            names.add("extra")
        return frozenset(names)


class UsersPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: list[UserSchema] = Field(default_factory=list)
    total_count: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("totalCount", "total_count")
    )


class UsersListResponse(BaseModel):
    """Schema of ``GET /users``: ``{data: {users, totalCount}}``."""

    data: UsersPage

    def to_entity(self) -> CollectionResponse:
        return CollectionResponse(
            items=tuple(u.to_entity() for u in self.data.users),
            total_count=self.data.total_count,
        )


class StatusUpdateRequest(BaseModel):
    """Body of ``PATCH /users/{id}``."""

    status: UserStatus


class StatusUpdateResponse(BaseModel):
    """Schema of ``PATCH /users/{id}``: ``{success, data, message}``."""

    success: bool = True
    data: UserSchema
    message: str = ""

    def to_entity(self) -> StatusUpdateResult:
        return StatusUpdateResult(
            success=self.success,
            user=self.data.to_entity(),
            message=self.message,
            fields=self.data.provided_fields(),
        )


class ApiErrorBody(BaseModel):
    """Optional JSON body of a non-2xx response: ``{message, ...details}``."""

    model_config = ConfigDict(extra="allow")

    message: str | None = None

    def details(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
