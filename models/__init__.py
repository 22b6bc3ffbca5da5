# -*- coding: utf-8 -*-
"""
__init__.py
--------------------------------------------------------------------
汇总导入所有模型，使得：
- Flask-Migrate/Alembic 自动检测模型。
- 外部模块可简化引用：from models import Comment, Vote
"""

from .mixins import TimestampMixin, SoftDeleteMixin
from .user import User
from .comment import Comment
from .vote import Vote

__all__ = ["TimestampMixin", "SoftDeleteMixin", "User", "Comment", "Vote"]
