"""
PostDesk Backend — Post Route Handlers
========================================

Endpoints:
    POST   /posts              201  create (owner = caller)      [posts.create]
    GET    /posts              200  paginated list
    GET    /posts/{post_id}    200  detail
    PATCH  /posts/{post_id}    200  update, owner only           [posts.update]
    DELETE /posts/{post_id}    200  delete, owner only           [posts.delete]
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from postdesk.schemas.auth import Principal
from postdesk.schemas.common import PaginatedResult, SuccessEnvelope
from postdesk.schemas.post import PostCreate, PostResponse, PostUpdate
from postdesk.routes.dependencies import get_envelope, get_post_service
from postdesk.services.access_guard import require_capability
from postdesk.services.envelope import EnvelopeTransformer
from postdesk.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessEnvelope[PostResponse],
    summary="Create a post",
)
async def create_post(
    payload: PostCreate,
    principal: Optional[Principal] = Depends(require_capability("posts.create")),
    service: PostService = Depends(get_post_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    post = await service.create_post(payload, principal)
    return envelope.wrap(post, status_code=status.HTTP_201_CREATED, message="Post created successfully")


@router.get(
    "",
    response_model=SuccessEnvelope[PaginatedResult[PostResponse]],
    summary="List posts with search, filtering, sorting and pagination",
)
async def list_posts(
    search_term: Optional[str] = Query(None, alias="searchTerm", description="Matches title or content"),
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    user_id: Optional[str] = Query(None, alias="userId", description="Legacy alias of ownerId"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="title | createdAt | updatedAt"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="ASC | DESC"),
    order: Optional[str] = Query(None, description="Legacy alias of sortOrder"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: PostService = Depends(get_post_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    result = await service.list_posts(
        {
            "searchTerm": search_term,
            "ownerId": owner_id,
            "userId": user_id,
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "order": order,
            "page": page,
            "limit": limit,
        }
    )
    return envelope.wrap(result)


@router.get(
    "/{post_id}",
    response_model=SuccessEnvelope[PostResponse],
    summary="Get a post by ID",
)
async def get_post(
    post_id: str,
    service: PostService = Depends(get_post_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    return envelope.wrap(await service.get_post(post_id))


@router.patch(
    "/{post_id}",
    response_model=SuccessEnvelope[PostResponse],
    summary="Update your own post",
)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    principal: Optional[Principal] = Depends(require_capability("posts.update")),
    service: PostService = Depends(get_post_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    post = await service.update_post(post_id, payload, principal)
    return envelope.wrap(post, message="Post updated successfully")


@router.delete(
    "/{post_id}",
    response_model=SuccessEnvelope[None],
    summary="Delete your own post",
)
async def delete_post(
    post_id: str,
    principal: Optional[Principal] = Depends(require_capability("posts.delete")),
    service: PostService = Depends(get_post_service),
    envelope: EnvelopeTransformer = Depends(get_envelope),
):
    await service.delete_post(post_id, principal)
    return envelope.wrap(None, message="Post deleted successfully")
