# app/services/post_service.py

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.common.errors import NotFound
from app.core.policies import Operation, Table, authorize, is_allowed, visible
from app.models.post import Post, PostCreate, PostUpdate

logger = logging.getLogger(__name__)


class PostService:

    def __init__(self, db: Session):
        self.db = db

    def list_feed(
        self,
        requester_id: Optional[str],
        author_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Post]:
        """Newest first, filtered in SQL down to what the requester may read."""
        stmt = select(Post).where(visible(Table.POSTS, requester_id))
        if author_id is not None:
            stmt = stmt.where(Post.user_id == author_id)
        stmt = stmt.order_by(Post.created_at.desc()).limit(limit).offset(offset)
        return list(self.db.execute(stmt).unique().scalars())

    def get_post(self, requester_id: Optional[str], post_id: str) -> Post:
        post = self.db.get(Post, post_id)
        # hidden rows look exactly like missing ones
        if post is None or not is_allowed(self.db, requester_id, Table.POSTS, Operation.SELECT, post):
            raise NotFound("Post not found")
        return post

    def create_post(self, requester_id: Optional[str], post_in: PostCreate) -> Post:
        data = post_in.model_dump()
        user_id = data.pop("user_id") or requester_id
        post = Post(user_id=user_id, **data)
        post.privacy = post_in.privacy.value
        authorize(self.db, requester_id, Table.POSTS, Operation.INSERT, post)
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        logger.info("Post %s created by %s (%s)", post.id, user_id, post.privacy)
        return post

    def update_post(self, requester_id: Optional[str], post_id: str, post_in: PostUpdate) -> Post:
        post = self.get_post(requester_id, post_id)
        # fields the client did not send stay as they are
        update_data = post_in.model_dump(exclude_unset=True)
        authorize(self.db, requester_id, Table.POSTS, Operation.UPDATE, post, changes=update_data)
        for key, value in update_data.items():
            if key == "privacy" and value is not None:
                value = value.value
            setattr(post, key, value)
        self.db.commit()
        self.db.refresh(post)
        return post

    def delete_post(self, requester_id: Optional[str], post_id: str) -> None:
        post = self.get_post(requester_id, post_id)
        authorize(self.db, requester_id, Table.POSTS, Operation.DELETE, post)
        self.db.delete(post)
        self.db.commit()
        logger.info("Post %s deleted by %s", post_id, requester_id)
