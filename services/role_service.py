from typing import Optional

from flask import g

from utils.exceptions import ForbiddenError, UnauthorizedError


class RoleService:
    """
    当前请求用户的角色判断。
    user 由 optional_auth / auth_required 解析后写入 g.current_user，
    控制器通过 RoleService.current() 取得实例。
    """

    def __init__(self, user=None):
        self.user = user

    @classmethod
    def current(cls) -> "RoleService":
        return cls(getattr(g, "current_user", None))

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user else None

    def is_manager(self) -> bool:
        return bool(self.user and self.user.is_manager)

    def user_id_or_fail(self) -> int:
        if not self.user:
            raise UnauthorizedError("未登录")
        return self.user.id

    def manager_id_or_fail(self) -> int:
        user_id = self.user_id_or_fail()
        if not self.is_manager():
            raise ForbiddenError("需要管理员权限")
        return user_id

    def can_edit(self, owner_id: Optional[int]) -> bool:
        """作者本人或管理员"""
        if not self.user:
            return False
        return self.is_manager() or (owner_id is not None and owner_id == self.user.id)

    def editable_or_fail(self, owner_id: Optional[int]) -> int:
        user_id = self.user_id_or_fail()
        if not self.can_edit(owner_id):
            raise ForbiddenError("只能操作自己发表的评论")
        return user_id
