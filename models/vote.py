# -*- coding: utf-8 -*-
"""
vote.py
--------------------------------------------------------------------
投票（多态）：
- votable_type + votable_id 指向被投票的实体，评论使用 votable_type = "comment"。
- 同一用户对同一实体只能有一条投票记录（唯一约束），改投只更新 type。
"""

from sqlalchemy import func, DateTime

from extensions.database import db
from .mixins import COMMON_TABLE_ARGS


class Vote(db.Model):
    __tablename__ = "vote"
    __table_args__ = (
        db.UniqueConstraint("user_id", "votable_type", "votable_id", name="uq_vote_user_votable"),
        db.Index("ix_vote_votable", "votable_type", "votable_id"),
        COMMON_TABLE_ARGS,
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    votable_type = db.Column(db.String(32), nullable=False)
    votable_id = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(8), nullable=False)  # up / down
    created_at = db.Column(DateTime, nullable=False, server_default=func.now())

    user = db.relationship("User", backref=db.backref("votes", passive_deletes=True))

    def __repr__(self):
        return f"<Vote user={self.user_id} {self.votable_type}:{self.votable_id} {self.type}>"
