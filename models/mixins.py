# models/mixins.py
from sqlalchemy import func, DateTime
from extensions.database import db

COMMON_TABLE_ARGS = {
    "mysql_engine": "InnoDB",
    "mysql_charset": "utf8mb4",
    "mysql_collate": "utf8mb4_unicode_ci",
}


class TimestampMixin:
    created_at = db.Column(DateTime, nullable=False, server_default=func.now(), index=True)
    updated_at = db.Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now(), index=True)


class SoftDeleteMixin:
    """软删除混入类"""
    is_deleted = db.Column(
        db.Boolean,
        nullable=False,
        server_default="0",
        default=False,
        index=True,
        comment="是否已删除"
    )
    deleted_at = db.Column(
        DateTime,
        comment="删除时间"
    )
    deleted_by = db.Column(
        db.Integer,
        db.ForeignKey("user.id", ondelete="SET NULL"),
        comment="删除人ID"
    )

    def soft_delete(self, user_id=None):
        """
        执行软删除；已删除的记录保持原删除时间与删除人
        :param user_id: 执行删除操作的用户ID
        """
        if self.is_deleted:
            return False
        self.is_deleted = True
        self.deleted_at = func.now()
        self.deleted_by = user_id
        return True

    def restore(self):
        """恢复软删除的记录"""
        if not self.is_deleted:
            return False
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by = None
        return True


class BaseModelMixin(TimestampMixin, SoftDeleteMixin):
    """基础模型混入 - 包含时间戳和软删除"""
    pass
