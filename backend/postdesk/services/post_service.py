"""
PostDesk Backend — Post Service (Business Logic)
==================================================

What:  Create, list, read, update and delete posts.
How:   Same constructor wiring as UserService. The owner of a new post is the
       calling principal. Update and delete require the caller to own the
       post; no role bypasses the ownership check.
"""

import logging
import uuid
from typing import Any, Mapping, Optional

from postdesk.exceptions import ForbiddenError, NotFoundError
from postdesk.models.post import Post
from postdesk.repositories.base import Repository
from postdesk.schemas.auth import Principal
from postdesk.schemas.common import PaginatedResult
from postdesk.schemas.post import (
    POST_CREATE_RULES,
    POST_UPDATE_RULES,
    PostCreate,
    PostResponse,
    PostUpdate,
)
from postdesk.services.access_guard import NO_PRINCIPAL_MESSAGE
from postdesk.services.query_builder import FilterField, QuerySpecBuilder, ResourceQueryConfig
from postdesk.services.query_executor import QueryExecutor
from postdesk.services.validation import validate_fields

logger = logging.getLogger(__name__)

POST_QUERY = ResourceQueryConfig(
    name="posts",
    sort_fields={
        "title": "title",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    },
    default_sort="createdAt",
    search_fields=("title", "content"),
    filter_fields={
        "ownerId": FilterField("owner_id"),
        # Legacy name for the same filter
        "userId": FilterField("owner_id"),
    },
)

NOT_OWNER_MESSAGE = "You can only modify your own posts"


class PostService:
    def __init__(
        self,
        repository: Repository[Post],
        query_builder: QuerySpecBuilder,
        executor: QueryExecutor,
    ):
        self.repository = repository
        self.query_builder = query_builder
        self.executor = executor

    async def list_posts(self, params: Mapping[str, Optional[str]]) -> PaginatedResult[PostResponse]:
        spec = self.query_builder.build(params, POST_QUERY)
        page = await self.executor.execute(spec, self.repository)
        return page.map(PostResponse.model_validate)

    async def get_post(self, post_id: Any) -> PostResponse:
        return PostResponse.model_validate(await self._get_entity(post_id))

    async def create_post(self, payload: PostCreate, principal: Optional[Principal]) -> PostResponse:
        if principal is None:
            raise ForbiddenError(NO_PRINCIPAL_MESSAGE)

        data = payload.model_dump(by_alias=True)
        validate_fields(data, POST_CREATE_RULES)

        post = Post(
            id=uuid.uuid4(),
            title=data["title"],
            content=data["content"],
            owner_id=principal.id,
        )
        saved = await self.repository.save(post)
        logger.info("Post created: %s by %s", saved.id, principal.id)
        return PostResponse.model_validate(saved)

    async def update_post(
        self, post_id: Any, payload: PostUpdate, principal: Optional[Principal]
    ) -> PostResponse:
        """
        Raises:
            NotFoundError:     no such post
            ForbiddenError:    caller does not own the post
            ValidationFailure: trimmed title/content break a rule
        """
        post = await self._get_entity(post_id)
        self._ensure_owner(post, principal)

        data = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in payload.model_dump(by_alias=True, exclude_unset=True).items()
        }
        validate_fields(data, POST_UPDATE_RULES, partial=True)

        for field in ("title", "content"):
            if field in data:
                setattr(post, field, data[field])

        saved = await self.repository.save(post)
        logger.info("Post updated: %s", saved.id)
        return PostResponse.model_validate(saved)

    async def delete_post(self, post_id: Any, principal: Optional[Principal]) -> None:
        post = await self._get_entity(post_id)
        self._ensure_owner(post, principal)
        await self.repository.delete(post.id)
        logger.info("Post deleted: %s", post.id)

    async def _get_entity(self, post_id: Any) -> Post:
        post = await self.repository.find_by_id(post_id)
        if post is None:
            raise NotFoundError("Post", str(post_id))
        return post

    @staticmethod
    def _ensure_owner(post: Post, principal: Optional[Principal]) -> None:
        if principal is None:
            raise ForbiddenError(NO_PRINCIPAL_MESSAGE)
        if str(post.owner_id) != principal.id:
            raise ForbiddenError(
                NOT_OWNER_MESSAGE,
                context={"post_id": str(post.id), "principal_id": principal.id},
            )
