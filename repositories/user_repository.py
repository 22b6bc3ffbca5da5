# repositories/user_repository.py
from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from models.user import User
from extensions.database import db


class UserRepository:
    """
    用户的仓储（数据访问）层。
    说明：
    - 评论模块只读用户（作者、投票者、当前登录用户）。
    """

    @staticmethod
    def find_by_id(user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)

    @staticmethod
    def find_by_ids(user_ids: Iterable[int]) -> List[User]:
        """批量根据 ID 查询用户。"""
        ids = {uid for uid in user_ids if uid is not None}
        if not ids:
            return []
        return User.query.filter(User.id.in_(ids)).all()

    @staticmethod
    def get_user_map(user_ids: Iterable[int]) -> Dict[int, User]:
        """返回 {user_id: User} 的映射，便于序列化展示。"""
        return {user.id: user for user in UserRepository.find_by_ids(user_ids)}
