# constants/comment.py
"""
评论相关的枚举与常量集合
统一管理：
  - 评论目标类型 CommentResourceType: question / answer / article
  - 投票类型 VoteType: up / down
提供:
  - Enum 定义
  - values() 方法：返回所有 value 列表
  - 校验辅助函数
"""

from enum import Enum
from utils.exceptions import ValidationError

# 投票表中评论对应的 votable_type
VOTABLE_COMMENT = "comment"


class CommentResourceType(Enum):
    QUESTION = "question"
    ANSWER = "answer"
    ARTICLE = "article"

    @classmethod
    def values(cls):
        return [m.value for m in cls]


class VoteType(Enum):
    UP = "up"
    DOWN = "down"

    @classmethod
    def values(cls):
        return [m.value for m in cls]


# -------- 校验辅助函数 --------
def validate_resource_type(resource_type: str):
    if resource_type not in CommentResourceType.values():
        raise ValidationError(f"resource_type 必须是 {CommentResourceType.values()} 之一")


def validate_vote_type(vote_type: str):
    if vote_type not in VoteType.values():
        raise ValidationError(f"type 必须是 {VoteType.values()} 之一")
