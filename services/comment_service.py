import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from constants.comment import VOTABLE_COMMENT, validate_resource_type, validate_vote_type
from models.comment import Comment
from repositories.comment_repository import CommentRepository
from repositories.user_repository import UserRepository
from repositories.vote_repository import VoteRepository
from utils.exceptions import NotFoundError, ValidationError
from utils.query_params import (
    DESC,
    bounded_int,
    ListQuerySpec,
    parse_pagination,
    resolve_filter,
    resolve_order,
)

logger = logging.getLogger(__name__)

COMMENT_LIST_SPEC = ListQuerySpec(
    order_fields=frozenset({"created_at", "updated_at", "vote_count", "deleted_at"}),
    filter_fields=frozenset({"comment_id", "user_id", "resource_type", "resource_id"}),
    default_order={"created_at": DESC},
)

# 回收站列表默认按删除时间倒序
TRASH_DEFAULT_ORDER = {"deleted_at": DESC}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


_FILTER_CASTS = {
    "comment_id": bounded_int,
    "user_id": bounded_int,
    "resource_id": bounded_int,
    "resource_type": str,
    "is_deleted": _as_bool,
}

ListResult = Tuple[List[Any], int, int, int]


@dataclass(frozen=True)
class CommentSettings:
    content_max_length: int = 1000
    page_size: int = 15
    page_size_max: int = 100
    bulk_limit: int = 100

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "CommentSettings":
        return cls(
            content_max_length=int(cfg.get("COMMENT_CONTENT_MAX_LENGTH", 1000)),
            page_size=int(cfg.get("COMMENT_PAGE_SIZE", 15)),
            page_size_max=int(cfg.get("COMMENT_PAGE_SIZE_MAX", 100)),
            bulk_limit=int(cfg.get("COMMENT_BULK_LIMIT", 100)),
        )


class CommentService:
    """
    评论的增删改查、回收站与投票。
    当前用户 ID 由调用方显式传入，本类不读取请求上下文。
    """

    def __init__(
        self,
        comment_repo: CommentRepository,
        vote_repo: VoteRepository,
        user_repo: UserRepository,
        settings: CommentSettings | None = None,
    ):
        self.comment_repo = comment_repo
        self.vote_repo = vote_repo
        self.user_repo = user_repo
        self.settings = settings or CommentSettings()

    # ------------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------------
    def _get_comment_or_fail(self, comment_id: int, include_deleted: bool = False) -> Comment:
        comment = self.comment_repo.get_by_id(comment_id, include_deleted=include_deleted)
        if not comment:
            raise NotFoundError("评论不存在")
        return comment

    def _validate_content(self, content: Any) -> str:
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("评论内容不能为空")
        content = content.strip()
        max_length = self.settings.content_max_length
        if len(content) > max_length:
            raise ValidationError(f"评论内容不能超过 {max_length} 个字符")
        return content

    @staticmethod
    def _cast_filter(raw: Mapping[str, Any]) -> Dict[str, Any]:
        """类型转换失败的条件直接丢弃"""
        result = {}
        for key, value in raw.items():
            cast = _FILTER_CASTS.get(key)
            if cast is None:
                continue
            try:
                result[key] = cast(value)
            except (TypeError, ValueError):
                logger.debug("drop comment filter %s=%r", key, value)
        return result

    def _refresh_vote_count(self, comment: Comment) -> int:
        count = self.vote_repo.count(VOTABLE_COMMENT, comment.id)
        self.comment_repo.set_vote_count(comment, count)
        return count

    def _serialize(
        self,
        comments: Iterable[Comment],
        current_user_id: Optional[int],
        include_vote_info: bool,
    ) -> List[dict]:
        comments = list(comments)
        vote_map: Dict[int, str] = {}
        if include_vote_info and current_user_id:
            vote_map = self.vote_repo.get_user_vote_map(
                current_user_id, VOTABLE_COMMENT, [c.id for c in comments]
            )

        result = []
        for comment in comments:
            data = comment.to_dict()
            relationships = {"user": comment.user.to_dict() if comment.user else None}
            if include_vote_info:
                relationships["voting"] = vote_map.get(comment.id, "")
            data["relationships"] = relationships
            result.append(data)
        return result

    # ------------------------------------------------------------------
    # 评论
    # ------------------------------------------------------------------
    def create(self, user_id: int, resource_type: str, resource_id: Any, content: Any) -> dict:
        validate_resource_type(resource_type)
        try:
            resource_id = bounded_int(resource_id)
        except (TypeError, ValueError):
            raise ValidationError("resource_id 不合法")
        if resource_id <= 0:
            raise ValidationError("resource_id 不合法")
        content = self._validate_content(content)

        comment = self.comment_repo.create(
            user_id=user_id,
            resource_type=resource_type,
            resource_id=resource_id,
            content=content,
        )
        self.comment_repo.commit()
        logger.info("comment created id=%s user=%s %s:%s", comment.id, user_id, resource_type, resource_id)
        return self._serialize([comment], user_id, False)[0]

    def get_list(
        self,
        default_filter: Optional[Mapping[str, Any]] = None,
        query_args: Optional[Mapping[str, Any]] = None,
        *,
        current_user_id: Optional[int] = None,
        include_vote_info: bool = False,
        default_order: Optional[Mapping[str, str]] = None,
    ) -> ListResult:
        """
        获取评论列表

        :param default_filter: 默认条件；query 中同名参数会覆盖它。
            不含 ``is_deleted`` 时只返回未删除的评论。
        :param query_args: 请求 query 参数（order / page / per_page / 白名单内的过滤字段）。
        :return: (items, total, page, per_page)
        """
        query_args = query_args or {}
        spec = COMMENT_LIST_SPEC

        filters = resolve_filter(query_args, spec.filter_fields, default_filter or {})
        filters = self._cast_filter(filters)
        filters.setdefault("is_deleted", False)

        order = resolve_order(
            query_args.get("order"),
            spec.order_fields,
            default_order if default_order is not None else spec.default_order,
        )
        page, per_page = parse_pagination(
            query_args, self.settings.page_size, self.settings.page_size_max
        )

        comments, total = self.comment_repo.list(filters, order, page=page, per_page=per_page)
        items = self._serialize(comments, current_user_id, include_vote_info)
        return items, total, page, per_page

    def get(
        self,
        comment_id: int,
        *,
        current_user_id: Optional[int] = None,
        include_vote_info: bool = False,
        include_deleted: bool = False,
    ) -> Optional[dict]:
        comment = self.comment_repo.get_by_id(comment_id, include_deleted=include_deleted)
        if not comment:
            return None
        return self._serialize([comment], current_user_id, include_vote_info)[0]

    def get_or_fail(
        self,
        comment_id: int,
        *,
        current_user_id: Optional[int] = None,
        include_vote_info: bool = False,
        include_deleted: bool = False,
    ) -> dict:
        data = self.get(
            comment_id,
            current_user_id=current_user_id,
            include_vote_info=include_vote_info,
            include_deleted=include_deleted,
        )
        if data is None:
            raise NotFoundError("评论不存在")
        return data

    def update(self, comment_id: int, content: Any) -> None:
        comment = self._get_comment_or_fail(comment_id)
        content = self._validate_content(content)
        self.comment_repo.update_content(comment, content)
        self.comment_repo.commit()
        logger.info("comment updated id=%s", comment_id)

    # ------------------------------------------------------------------
    # 删除 / 回收站
    # ------------------------------------------------------------------
    def delete(self, comment_id: int, *, deleted_by: Optional[int] = None) -> bool:
        """软删除；已删除的评论再次删除不报错也不改变状态。"""
        comment = self._get_comment_or_fail(comment_id, include_deleted=True)
        changed = self.comment_repo.soft_delete(comment, user_id=deleted_by)
        self.comment_repo.commit()
        if changed:
            logger.info("comment soft deleted id=%s by=%s", comment_id, deleted_by)
        return changed

    def delete_multiple(self, comment_ids: Iterable[int], *, deleted_by: Optional[int] = None) -> int:
        """批量软删除，不存在的 ID 跳过。调用方负责校验管理员权限。"""
        changed = 0
        for comment in self.comment_repo.get_by_ids(comment_ids):
            if self.comment_repo.soft_delete(comment, user_id=deleted_by):
                changed += 1
        self.comment_repo.commit()
        logger.info("comments soft deleted count=%s by=%s", changed, deleted_by)
        return changed

    def restore(self, comment_id: int) -> bool:
        comment = self._get_comment_or_fail(comment_id, include_deleted=True)
        changed = self.comment_repo.restore(comment)
        self.comment_repo.commit()
        if changed:
            logger.info("comment restored id=%s", comment_id)
        return changed

    def restore_multiple(self, comment_ids: Iterable[int]) -> int:
        changed = 0
        for comment in self.comment_repo.get_by_ids(comment_ids):
            if self.comment_repo.restore(comment):
                changed += 1
        self.comment_repo.commit()
        logger.info("comments restored count=%s", changed)
        return changed

    def _destroy(self, comment: Comment):
        self.vote_repo.delete_all(VOTABLE_COMMENT, comment.id)
        self.comment_repo.destroy(comment)

    def destroy(self, comment_id: int) -> None:
        """彻底删除评论及其投票，不可恢复"""
        comment = self._get_comment_or_fail(comment_id, include_deleted=True)
        self._destroy(comment)
        self.comment_repo.commit()
        logger.warning("comment destroyed id=%s", comment_id)

    def destroy_multiple(self, comment_ids: Iterable[int]) -> int:
        comments = self.comment_repo.get_by_ids(comment_ids)
        for comment in comments:
            self._destroy(comment)
        self.comment_repo.commit()
        logger.warning("comments destroyed ids=%s", [c.id for c in comments])
        return len(comments)

    # ------------------------------------------------------------------
    # 投票
    # ------------------------------------------------------------------
    def get_voters(
        self,
        comment_id: int,
        vote_type: Optional[str] = None,
        include_user_info: bool = False,
        query_args: Optional[Mapping[str, Any]] = None,
    ) -> ListResult:
        """
        获取投票者

        :param vote_type: ``up`` / ``down``；为空表示全部。
        :param include_user_info: True 时返回用户公开资料（附 ``vote_type``），否则只返回用户 ID。
        """
        if vote_type:
            validate_vote_type(vote_type)
        else:
            vote_type = None
        self._get_comment_or_fail(comment_id)

        page, per_page = parse_pagination(
            query_args, self.settings.page_size, self.settings.page_size_max
        )
        votes, total = self.vote_repo.list_votes(
            VOTABLE_COMMENT, comment_id, vote_type, page=page, per_page=per_page
        )
        if not include_user_info:
            return [v.user_id for v in votes], total, page, per_page

        user_map = self.user_repo.get_user_map(v.user_id for v in votes)
        items = []
        for vote in votes:
            user = user_map.get(vote.user_id)
            if not user:
                continue
            data = user.to_dict()
            data["vote_type"] = vote.type
            items.append(data)
        return items, total, page, per_page

    def add_vote(self, user_id: int, comment_id: int, vote_type: Any) -> None:
        """
        添加或改投；同一用户对同一评论只保留一条投票。
        并发插入触发唯一约束时回滚后重试一次。
        """
        validate_vote_type(vote_type)
        comment = self._get_comment_or_fail(comment_id)
        try:
            self.vote_repo.upsert(user_id, VOTABLE_COMMENT, comment.id, vote_type)
            self._refresh_vote_count(comment)
            self.comment_repo.commit()
        except IntegrityError:
            self.comment_repo.rollback()
            logger.warning("vote conflict user=%s comment=%s, retrying", user_id, comment_id)
            comment = self._get_comment_or_fail(comment_id)
            self.vote_repo.upsert(user_id, VOTABLE_COMMENT, comment.id, vote_type)
            self._refresh_vote_count(comment)
            self.comment_repo.commit()

    def delete_vote(self, user_id: int, comment_id: int) -> None:
        comment = self._get_comment_or_fail(comment_id, include_deleted=True)
        removed = self.vote_repo.delete(user_id, VOTABLE_COMMENT, comment.id)
        if removed:
            self._refresh_vote_count(comment)
        self.comment_repo.commit()

    def get_vote_count(self, comment_id: int, vote_type: Optional[str] = None) -> int:
        return self.vote_repo.count(VOTABLE_COMMENT, comment_id, vote_type)
