from typing import Any, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import select, func, desc, asc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from extensions.database import db
from models.comment import Comment

# 过滤条件键 -> 字段
FILTER_COLUMNS = {
    "comment_id": Comment.id,
    "user_id": Comment.user_id,
    "resource_type": Comment.resource_type,
    "resource_id": Comment.resource_id,
    "is_deleted": Comment.is_deleted,
}

# 排序键 -> 字段
ORDER_COLUMNS = {
    "created_at": Comment.created_at,
    "updated_at": Comment.updated_at,
    "deleted_at": Comment.deleted_at,
    "vote_count": Comment.vote_count,
}


class CommentRepository:
    @staticmethod
    def create(user_id: int, resource_type: str, resource_id: int, content: str) -> Comment:
        comment = Comment(
            user_id=user_id,
            resource_type=resource_type,
            resource_id=resource_id,
            content=content,
            vote_count=0,
            is_deleted=False,
        )
        db.session.add(comment)
        db.session.flush()
        return comment

    @staticmethod
    def get_by_id(comment_id: int, include_deleted: bool = False) -> Optional[Comment]:
        stmt = (
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.id == comment_id)
        )
        if not include_deleted:
            stmt = stmt.where(Comment.is_deleted == False)  # noqa: E712
        return db.session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def get_by_ids(comment_ids: Iterable[int], include_deleted: bool = True) -> List[Comment]:
        ids = [cid for cid in comment_ids if cid is not None]
        if not ids:
            return []
        stmt = select(Comment).where(Comment.id.in_(ids))
        if not include_deleted:
            stmt = stmt.where(Comment.is_deleted == False)  # noqa: E712
        return list(db.session.execute(stmt).scalars().all())

    @staticmethod
    def list(
        filters: Mapping[str, Any],
        order: Mapping[str, str],
        page: int = 1,
        per_page: int = 15,
    ) -> Tuple[List[Comment], int]:
        """
        filters / order 的键必须已经过白名单过滤；未知键直接忽略。
        """
        stmt = select(Comment).options(selectinload(Comment.user))
        count_stmt = select(func.count(Comment.id))

        conditions = []
        for key, value in filters.items():
            column = FILTER_COLUMNS.get(key)
            if column is None:
                continue
            conditions.append(column == value)
        if conditions:
            stmt = stmt.where(*conditions)
            count_stmt = count_stmt.where(*conditions)

        for key, direction in order.items():
            column = ORDER_COLUMNS.get(key)
            if column is None:
                continue
            stmt = stmt.order_by(desc(column) if direction == "DESC" else asc(column))
        # 同值时按 id 倒序，保证分页稳定
        stmt = stmt.order_by(desc(Comment.id))

        total = db.session.execute(count_stmt).scalar() or 0
        stmt = stmt.offset((page - 1) * per_page).limit(per_page)
        items = list(db.session.execute(stmt).scalars().all())
        return items, total

    @staticmethod
    def update_content(comment: Comment, content: str) -> Comment:
        comment.content = content
        comment.updated_at = func.now()
        db.session.flush()
        return comment

    @staticmethod
    def set_vote_count(comment: Comment, vote_count: int):
        comment.vote_count = vote_count
        db.session.flush()

    @staticmethod
    def soft_delete(comment: Comment, user_id: Optional[int] = None) -> bool:
        changed = comment.soft_delete(user_id=user_id)
        db.session.flush()
        return changed

    @staticmethod
    def restore(comment: Comment) -> bool:
        changed = comment.restore()
        db.session.flush()
        return changed

    @staticmethod
    def destroy(comment: Comment):
        db.session.delete(comment)
        db.session.flush()

    @staticmethod
    def commit():
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def rollback():
        db.session.rollback()
