from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, func, delete, desc

from extensions.database import db
from models.vote import Vote


class VoteRepository:
    """
    多态投票表的读写。
    写操作只 flush，由上层 commit。
    """

    @staticmethod
    def get(user_id: int, votable_type: str, votable_id: int) -> Optional[Vote]:
        stmt = select(Vote).where(
            Vote.user_id == user_id,
            Vote.votable_type == votable_type,
            Vote.votable_id == votable_id,
        )
        return db.session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def upsert(user_id: int, votable_type: str, votable_id: int, vote_type: str) -> Vote:
        vote = VoteRepository.get(user_id, votable_type, votable_id)
        if vote is None:
            vote = Vote(
                user_id=user_id,
                votable_type=votable_type,
                votable_id=votable_id,
                type=vote_type,
            )
            db.session.add(vote)
        else:
            vote.type = vote_type
        db.session.flush()
        return vote

    @staticmethod
    def delete(user_id: int, votable_type: str, votable_id: int) -> int:
        result = db.session.execute(
            delete(Vote).where(
                Vote.user_id == user_id,
                Vote.votable_type == votable_type,
                Vote.votable_id == votable_id,
            )
        )
        db.session.flush()
        return result.rowcount or 0

    @staticmethod
    def delete_all(votable_type: str, votable_id: int) -> int:
        result = db.session.execute(
            delete(Vote).where(
                Vote.votable_type == votable_type,
                Vote.votable_id == votable_id,
            )
        )
        db.session.flush()
        return result.rowcount or 0

    @staticmethod
    def count(votable_type: str, votable_id: int, vote_type: Optional[str] = None) -> int:
        stmt = select(func.count(Vote.id)).where(
            Vote.votable_type == votable_type,
            Vote.votable_id == votable_id,
        )
        if vote_type:
            stmt = stmt.where(Vote.type == vote_type)
        return db.session.execute(stmt).scalar() or 0

    @staticmethod
    def get_user_vote_map(user_id: int, votable_type: str, votable_ids: Iterable[int]) -> Dict[int, str]:
        """返回 {votable_id: type}，用于批量附加当前用户的投票状态。"""
        ids = {vid for vid in votable_ids if vid is not None}
        if not user_id or not ids:
            return {}
        stmt = select(Vote.votable_id, Vote.type).where(
            Vote.user_id == user_id,
            Vote.votable_type == votable_type,
            Vote.votable_id.in_(ids),
        )
        return {row[0]: row[1] for row in db.session.execute(stmt).all()}

    @staticmethod
    def list_votes(
        votable_type: str,
        votable_id: int,
        vote_type: Optional[str] = None,
        page: int = 1,
        per_page: int = 15,
    ) -> Tuple[List[Vote], int]:
        conditions = [Vote.votable_type == votable_type, Vote.votable_id == votable_id]
        if vote_type:
            conditions.append(Vote.type == vote_type)
        total = db.session.execute(select(func.count(Vote.id)).where(*conditions)).scalar() or 0
        stmt = (
            select(Vote)
            .where(*conditions)
            .order_by(desc(Vote.created_at), desc(Vote.id))
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(db.session.execute(stmt).scalars().all()), total
