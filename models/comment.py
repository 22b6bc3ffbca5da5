# -*- coding: utf-8 -*-
"""
comment.py
--------------------------------------------------------------------
评论：
- 通过 resource_type + resource_id 挂在问题 / 回答 / 文章下。
- vote_count 为投票数，每次投票变更后按 vote 表重新统计写回，用于排序。
- 软删除后进入回收站，可恢复或彻底删除。
"""

from extensions.database import db
from .mixins import BaseModelMixin, COMMON_TABLE_ARGS


class Comment(BaseModelMixin, db.Model):
    __tablename__ = "comment"
    __table_args__ = (
        db.Index("ix_comment_resource", "resource_type", "resource_id"),
        COMMON_TABLE_ARGS,
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="SET NULL"), index=True)
    resource_type = db.Column(db.String(32), nullable=False)  # question / answer / article
    resource_id = db.Column(db.Integer, nullable=False)
    content = db.Column(db.Text, nullable=False)
    vote_count = db.Column(db.Integer, nullable=False, server_default="0", default=0, index=True)

    user = db.relationship(
        "User",
        foreign_keys=[user_id],
        backref=db.backref("comments", passive_deletes=True),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "content": self.content,
            "vote_count": self.vote_count,
            "is_deleted": bool(self.is_deleted),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }
