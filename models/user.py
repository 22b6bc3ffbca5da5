# -*- coding: utf-8 -*-
"""
user.py
--------------------------------------------------------------------
用户实体。
说明：
- 注册、登录、资料维护由用户模块负责，这里只保留评论模块需要的字段。
- role 字段为全局角色：user / manager / admin。
- active 控制账号启用状态，避免直接删除账号导致历史评论失参。
- email 为隐私字段，公开资料中不返回。
"""

from extensions.database import db
from .mixins import TimestampMixin, COMMON_TABLE_ARGS
from constants.roles import SystemRole, MANAGER_ROLES

# 公开资料中需要剔除的字段
PRIVACY_FIELDS = ("email",)


class User(TimestampMixin, db.Model):
    __tablename__ = "user"
    __table_args__ = (COMMON_TABLE_ARGS,)

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True)
    avatar = db.Column(db.String(255))
    headline = db.Column(db.String(255))
    role = db.Column(db.String(32), nullable=False, server_default=SystemRole.USER.value, default=SystemRole.USER.value)
    active = db.Column(db.Boolean, nullable=False, server_default="1", default=True)
    password_version = db.Column(db.Integer, nullable=False, server_default="1", default=1)

    def __repr__(self):
        return f"<User id={self.id} username={self.username} role={self.role}>"

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES

    def to_dict(self, public: bool = True):
        data = {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "avatar": self.avatar,
            "headline": self.headline,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if public:
            for key in PRIVACY_FIELDS:
                data.pop(key, None)
        return data
