"""Comment thread API endpoints.

Provides routes for:
- Comment CRUD on a lesson
- Replies at three nesting levels
- Reactions on any node

Every mutating route answers with the whole updated thread.
"""

from fastapi import APIRouter, Query, status

from src.auth.dependencies import CurrentUser, OptionalUser
from src.auth.schemas import Requester
from src.config import get_settings

from .dependencies import CommentServiceDep, handle_comment_error
from .exceptions import CommentError
from .schemas import (
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    MessageResponse,
    ReactionRequest,
    ReplyCreatedResponse,
    ReplyDeletedResponse,
    UpdateCommentRequest,
)
from .service import CommentService
from .tree import CommentPath


router = APIRouter(prefix="/v1", tags=["comments"])

# Keeps page * limit inside the driver's int32 LIMIT bind.
MAX_PAGE = 100_000


# ==============================================================================
# Comments
# ==============================================================================


@router.post(
    "/lessons/{lesson_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    lesson_id: str,
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Create a new comment on a lesson."""
    try:
        comment = await comment_service.create_comment(lesson_id, user, data.content)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CommentResponse.from_comment(comment)


@router.get(
    "/lessons/{lesson_id}/comments",
    response_model=CommentListResponse,
    summary="List lesson comments",
)
async def list_comments(
    lesson_id: str,
    comment_service: CommentServiceDep,
    viewer: OptionalUser,
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int | None = Query(default=None, ge=1),
) -> CommentListResponse:
    """Get a lesson's comments newest first, with their reply trees. Public."""
    settings = get_settings()
    limit = min(
        limit or settings.comments_page_size_default,
        settings.comments_page_size_max,
    )

    try:
        result = await comment_service.list_comments(
            lesson_id, page=page, limit=limit, viewer=viewer
        )
    except CommentError as e:
        raise handle_comment_error(e) from e

    return CommentListResponse(
        comments=[CommentResponse.from_comment(c) for c in result.comments],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
    )


@router.get(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Get comment",
)
async def get_comment(
    comment_id: str,
    comment_service: CommentServiceDep,
    viewer: OptionalUser,
) -> CommentResponse:
    """Get a single comment with its reply tree. Public."""
    try:
        comment = await comment_service.get_comment(comment_id, viewer=viewer)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CommentResponse.from_comment(comment)


@router.patch(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Update comment",
)
async def update_comment(
    comment_id: str,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Edit your own comment."""
    try:
        comment = await comment_service.update_comment(comment_id, user, data.content)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CommentResponse.from_comment(comment)


@router.delete(
    "/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: str,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    """Delete your own comment together with every reply under it."""
    try:
        await comment_service.delete_comment(comment_id, user)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return MessageResponse(message="Comment deleted")


@router.post(
    "/comments/{comment_id}/reactions",
    response_model=CommentResponse,
    summary="Toggle reaction on comment",
)
async def react_to_comment(
    comment_id: str,
    data: ReactionRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """React to a comment; the same emoji again removes it."""
    return await _toggle(comment_service, user, data, comment_id)


# ==============================================================================
# Replies
# ==============================================================================


@router.post(
    "/comments/{comment_id}/replies",
    response_model=ReplyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to comment",
)
async def add_reply(
    comment_id: str,
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> ReplyCreatedResponse:
    try:
        comment, reply = await comment_service.add_reply(comment_id, user, data.content)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return ReplyCreatedResponse(
        comment=CommentResponse.from_comment(comment), reply_id=reply.id
    )


@router.post(
    "/comments/{comment_id}/replies/{reply_id}/replies",
    response_model=ReplyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to reply",
)
async def add_nested_reply(
    comment_id: str,
    reply_id: str,
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> ReplyCreatedResponse:
    try:
        comment, reply = await comment_service.add_nested_reply(
            comment_id, reply_id, user, data.content
        )
    except CommentError as e:
        raise handle_comment_error(e) from e
    return ReplyCreatedResponse(
        comment=CommentResponse.from_comment(comment), reply_id=reply.id
    )


@router.post(
    "/comments/{comment_id}/replies/{reply_id}/replies/{nested_reply_id}/replies",
    response_model=ReplyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to nested reply",
)
async def add_deep_nested_reply(
    comment_id: str,
    reply_id: str,
    nested_reply_id: str,
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> ReplyCreatedResponse:
    """Deepest level; replies to these have no route."""
    try:
        comment, reply = await comment_service.add_deep_nested_reply(
            comment_id, reply_id, nested_reply_id, user, data.content
        )
    except CommentError as e:
        raise handle_comment_error(e) from e
    return ReplyCreatedResponse(
        comment=CommentResponse.from_comment(comment), reply_id=reply.id
    )


@router.patch(
    "/comments/{comment_id}/replies/{reply_id}",
    response_model=CommentResponse,
    summary="Update reply",
)
async def update_reply(
    comment_id: str,
    reply_id: str,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    return await _update(comment_service, user, data, comment_id, reply_id)


@router.patch(
    "/comments/{comment_id}/replies/{reply_id}/replies/{nested_reply_id}",
    response_model=CommentResponse,
    summary="Update nested reply",
)
async def update_nested_reply(
    comment_id: str,
    reply_id: str,
    nested_reply_id: str,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    return await _update(
        comment_service, user, data, comment_id, reply_id, nested_reply_id
    )


@router.patch(
    "/comments/{comment_id}/replies/{reply_id}/replies/{nested_reply_id}"
    "/replies/{deep_reply_id}",
    response_model=CommentResponse,
    summary="Update deep nested reply",
)
async def update_deep_nested_reply(
    comment_id: str,
    reply_id: str,
    nested_reply_id: str,
    deep_reply_id: str,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    return await _update(
        comment_service,
        user,
        data,
        comment_id,
        reply_id,
        nested_reply_id,
        deep_reply_id,
    )


@router.delete(
    "/comments/{comment_id}/replies/{reply_id}",
    response_model=ReplyDeletedResponse,
    summary="Delete reply",
)
async def delete_reply(
    comment_id: str,
    reply_id: str,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> ReplyDeletedResponse:
    return await _delete(comment_service, user, comment_id, reply_id)


@router.delete(
    "/comments/{comment_id}/replies/{reply_id}/replies/{nested_reply_id}",
    response_model=ReplyDeletedResponse,
    summary="Delete nested reply",
)
async def delete_nested_reply(
    comment_id: str,
    reply_id: str,
    nested_reply_id: str,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> ReplyDeletedResponse:
    return await _delete(comment_service, user, comment_id, reply_id, nested_reply_id)


@router.delete(
    "/comments/{comment_id}/replies/{reply_id}/replies/{nested_reply_id}"
    "/replies/{deep_reply_id}",
    response_model=ReplyDeletedResponse,
    summary="Delete deep nested reply",
)
async def delete_deep_nested_reply(
    comment_id: str,
    reply_id: str,
    nested_reply_id: str,
    deep_reply_id: str,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> ReplyDeletedResponse:
    return await _delete(
        comment_service, user, comment_id, reply_id, nested_reply_id, deep_reply_id
    )


# ==============================================================================
# Reply reactions
# ==============================================================================


@router.post(
    "/comments/{comment_id}/replies/{reply_id}/reactions",
    response_model=CommentResponse,
    summary="Toggle reaction on reply",
)
async def react_to_reply(
    comment_id: str,
    reply_id: str,
    data: ReactionRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    return await _toggle(comment_service, user, data, comment_id, reply_id)


@router.post(
    "/comments/{comment_id}/replies/{reply_id}/replies/{nested_reply_id}/reactions",
    response_model=CommentResponse,
    summary="Toggle reaction on nested reply",
)
async def react_to_nested_reply(
    comment_id: str,
    reply_id: str,
    nested_reply_id: str,
    data: ReactionRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    return await _toggle(
        comment_service, user, data, comment_id, reply_id, nested_reply_id
    )


@router.post(
    "/comments/{comment_id}/replies/{reply_id}/replies/{nested_reply_id}"
    "/replies/{deep_reply_id}/reactions",
    response_model=CommentResponse,
    summary="Toggle reaction on deep nested reply",
)
async def react_to_deep_nested_reply(
    comment_id: str,
    reply_id: str,
    nested_reply_id: str,
    deep_reply_id: str,
    data: ReactionRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    return await _toggle(
        comment_service,
        user,
        data,
        comment_id,
        reply_id,
        nested_reply_id,
        deep_reply_id,
    )


# ==============================================================================
# Shared handlers
# ==============================================================================


async def _update(
    comment_service: CommentService,
    user: Requester,
    data: UpdateCommentRequest,
    *ids: str,
) -> CommentResponse:
    try:
        comment = await comment_service.update_reply(
            CommentPath.parse(*ids), user, data.content
        )
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CommentResponse.from_comment(comment)


async def _delete(
    comment_service: CommentService,
    user: Requester,
    *ids: str,
) -> ReplyDeletedResponse:
    try:
        comment = await comment_service.delete_reply(CommentPath.parse(*ids), user)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return ReplyDeletedResponse(comment=CommentResponse.from_comment(comment))


async def _toggle(
    comment_service: CommentService,
    user: Requester,
    data: ReactionRequest,
    *ids: str,
) -> CommentResponse:
    try:
        comment = await comment_service.toggle_reaction(
            CommentPath.parse(*ids), user, data.emoji
        )
    except CommentError as e:
        raise handle_comment_error(e) from e
    return CommentResponse.from_comment(comment)
