"""
PostDesk Backend — User Route Handlers
========================================

What:  /users endpoints.
How:   Extract parameters, delegate to UserService, wrap in the success
       envelope. Guarded routes declare their capability key; the table in
       services/access_guard.py decides who may call them.

Endpoints:
    POST   /users                 201  create
    GET    /users                 200  paginated list (search, filter, sort)
    GET    /users/search          200  lookup by phone number
    GET    /users/{user_id}       200  detail
    PATCH  /users/{user_id}       200  partial update     [users.update]
    DELETE /users/{user_id}       200  delete, data=null  [users.delete]
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from postdesk.schemas.common import PaginatedResult, SuccessEnvelope
from postdesk.schemas.user import UserCreate, UserResponse, UserUpdate
from postdesk.routes.dependencies import get_envelope, get_user_service
from postdesk.services.access_guard import require_capability
from postdesk.services.envelope import EnvelopeTransformer
from postdesk.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessEnvelope[UserResponse],
    summary="Create a user",
)
async def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    user = await service.create_user(payload)
    return envelope.wrap(user, status_code=status.HTTP_201_CREATED, message="User created successfully")


@router.get(
    "",
    response_model=SuccessEnvelope[PaginatedResult[UserResponse]],
    summary="List users with search, filtering, sorting and pagination",
)
async def list_users(
    search_term: Optional[str] = Query(None, alias="searchTerm", description="Matches first name, last name or e-mail"),
    phone_number: Optional[str] = Query(None, alias="phoneNumber"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="firstName | lastName | email | createdAt"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="ASC | DESC"),
    order: Optional[str] = Query(None, description="Legacy alias of sortOrder"),
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Items per page (clamped to the configured maximum)"),
    service: UserService = Depends(get_user_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    # Paging values stay strings here: the query builder owns coercion and defaults
    result = await service.list_users(
        {
            "searchTerm": search_term,
            "phoneNumber": phone_number,
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "order": order,
            "page": page,
            "limit": limit,
        }
    )
    return envelope.wrap(result)


@router.get(
    "/search",
    response_model=SuccessEnvelope[UserResponse],
    summary="Find a user by phone number",
)
async def find_user_by_phone(
    phone_number: Optional[str] = Query(None, alias="phoneNumber"),
    service: UserService = Depends(get_user_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    return envelope.wrap(await service.find_by_phone(phone_number))


@router.get(
    "/{user_id}",
    response_model=SuccessEnvelope[UserResponse],
    summary="Get a user by ID",
)
async def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    return envelope.wrap(await service.get_user(user_id))


@router.patch(
    "/{user_id}",
    response_model=SuccessEnvelope[UserResponse],
    summary="Update a user (ADMIN, MANAGER)",
    dependencies=[Depends(require_capability("users.update"))],
)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    service: UserService = Depends(get_user_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    user = await service.update_user(user_id, payload)
    return envelope.wrap(user, message="User updated successfully")


@router.delete(
    "/{user_id}",
    response_model=SuccessEnvelope[None],
    summary="Delete a user (ADMIN, MANAGER)",
    dependencies=[Depends(require_capability("users.delete"))],
)
async def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    await service.delete_user(user_id)
    return envelope.wrap(None, message="User deleted successfully")
