"""Users view API controller — serves the hosted list view as JSON."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from userview.domain.entities import CollectionResponse, User, UserStatus
from userview.domain.exceptions import ClientRejection, UserApiError
from userview.infrastructure.dependencies import ViewSession, get_view_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users-view", tags=["users-view"])


# ── Schemas ──────────────────────────────────────────────────────────

class GroupOut(BaseModel):
    groupId: str
    groupName: str


class UserOut(BaseModel):
    userId: str
    name: str
    email: str
    status: str
    groups: list[GroupOut]
    updating: bool = False


class ViewStateOut(BaseModel):
    page: int                        # 1-based, as in the URL
    pageSize: int
    status: str
    query: str                       # debounced query
    rawQuery: str
    sortBy: str | None = None
    sortOrder: str | None = None
    columns: dict[str, bool] = {}


class ViewError(BaseModel):
    kind: str
    message: str


class UsersViewResponse(BaseModel):
    """One rendered view: the canonical URL plus the visible page."""
    url: str
    state: ViewStateOut | None = None
    users: list[UserOut] = []
    totalCount: int = 0
    error: ViewError | None = None


class StatusChange(BaseModel):
    status: UserStatus


class StatusChangeResponse(BaseModel):
    success: bool
    message: str
    state: str
    user: UserOut | None = None


class ColumnVisibility(BaseModel):
    visible: bool


class BoundaryStatus(BaseModel):
    hasError: bool
    errorCount: int


# ── Helpers ──────────────────────────────────────────────────────────

def _user_out(user: User, session: ViewSession) -> UserOut:
    return UserOut(
        userId=user.user_id,
        name=user.name,
        email=user.email,
        status=user.status.value,
        groups=[GroupOut(groupId=g.group_id, groupName=g.group_name) for g in user.groups],
        updating=session.service.is_updating(user.user_id),
    )


def _render(
    session: ViewSession,
    page: CollectionResponse | None,
    error: UserApiError | None = None,
) -> UsersViewResponse:
    state = session.service.state
    return UsersViewResponse(
        url=session.service.url,
        state=ViewStateOut(
            page=state.page + 1,
            pageSize=state.page_size,
            status=state.status.value,
            query=state.debounced_query,
            rawQuery=state.raw_query,
            sortBy=state.sort_by,
            sortOrder=state.sort_order.value if state.sort_order else None,
            columns=dict(state.column_visibility),
        ),
        users=[_user_out(u, session) for u in page.items] if page else [],
        totalCount=page.total_count if page else 0,
        error=ViewError(kind=error.kind.value, message=error.message) if error else None,
    )


def _status_for(error: UserApiError) -> int:
    """Pass upstream 4xx through; everything else is a bad gateway."""
    if 400 <= error.status_code < 500:
        return error.status_code
    if isinstance(error, ClientRejection):
        return status.HTTP_409_CONFLICT
    return status.HTTP_502_BAD_GATEWAY


# ── Endpoints ────────────────────────────────────────────────────────

@router.get("", response_model=UsersViewResponse)
async def get_users_view(
    request: Request,
    session: ViewSession = Depends(get_view_session),
):
    """Hydrate the view from the query string and return the visible page.

    A failed fetch keeps the last cached page visible when there is one and
    reports the classified error next to it.
    """

    async def render() -> UsersViewResponse:
        session.service.hydrate(request.url.query)
        try:
            page = await session.service.load()
        except UserApiError as e:
            logger.warning("Users page failed to load: %s", e)
            return _render(session, session.service.current_page(), e)
        return _render(session, page)

    result = await session.boundary.run(render)
    if result.ok:
        return result.value
    return UsersViewResponse(url=session.service.url, error=ViewError(**result.value))


@router.patch("/users/{user_id}/status", response_model=StatusChangeResponse)
async def change_user_status(
    user_id: str,
    body: StatusChange,
    session: ViewSession = Depends(get_view_session),
):
    """Change a user's status with an optimistic edit of the current page."""
    try:
        result = await session.service.toggle_status(user_id, body.status)
    except UserApiError as e:
        raise HTTPException(
            status_code=_status_for(e),
            detail={"kind": e.kind.value, "message": e.message},
        )
    return StatusChangeResponse(
        success=True,
        message=result.message,
        state=result.state.value,
        user=_user_out(result.user, session) if result.user else None,
    )


@router.post("/reset", response_model=BoundaryStatus)
async def reset_view(session: ViewSession = Depends(get_view_session)):
    """Leave the error state after a render failure."""
    session.boundary.reset()
    return BoundaryStatus(hasError=False, errorCount=session.boundary.error_count)


@router.put("/columns/{column}", response_model=ViewStateOut)
async def set_column_visibility(
    column: str,
    body: ColumnVisibility,
    session: ViewSession = Depends(get_view_session),
):
    """Show or hide a column; the choice persists across sessions."""
    session.service.set_column_visible(column, body.visible)
    return _render(session, None).state
