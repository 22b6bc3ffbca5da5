from __future__ import annotations

from enum import Enum


class SystemRole(str, Enum):
    """
    站点角色：
    - USER: 普通用户，可发表评论、投票
    - MANAGER: 管理员，可批量删除、管理回收站
    - ADMIN: 超级管理员，拥有 MANAGER 的全部权限
    """

    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"


# 拥有管理权限的角色
MANAGER_ROLES: set[str] = {SystemRole.MANAGER.value, SystemRole.ADMIN.value}
