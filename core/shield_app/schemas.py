"""Request and response models for the Forum Shield API.

Stored documents carry the client's IP address and user agent; the outbound
models deliberately leave them out.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ContentRequest(BaseModel):
    """Body of post/comment creation and of the filter probe."""
    content: str


class PostOut(BaseModel):
    id: str
    content: str
    created_at: datetime


class PostSummary(PostOut):
    comments_count: int = 0


class PostListResponse(BaseModel):
    posts: List[PostSummary]
    total: int
    page: int
    page_size: int


class CommentOut(BaseModel):
    id: str
    post_id: str
    content: str
    created_at: datetime


class CommentListResponse(BaseModel):
    comments: List[CommentOut]
    total: int
    page: int
    page_size: int


class ReloadResponse(BaseModel):
    """Outcome of an administrative banned-term reload."""
    success: bool
    message: str
    count: Optional[int] = None


class ProbeResponse(BaseModel):
    """Result of running text through the pipeline without storing it."""
    original: str
    filtered: str
    matched: List[str] = []
