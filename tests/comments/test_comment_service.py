# -*- coding: utf-8 -*-
"""单元测试：评论服务层（内存数据库）。"""

from __future__ import annotations

import pytest

from extensions.database import db
from models import Comment, Vote
from repositories.vote_repository import VoteRepository
from utils.exceptions import NotFoundError, ValidationError


def _ids(result):
    items, _total, _page, _per_page = result
    return [item["id"] for item in items]


# ----------------------- 创建 / 查询 -----------------------

def test_create_strips_content_and_starts_without_votes(comment_service, author):
    comment = comment_service.create(author.id, "answer", 9, "  你好  ")
    assert comment["content"] == "你好"
    assert comment["vote_count"] == 0
    assert comment["is_deleted"] is False
    assert comment["relationships"]["user"]["id"] == author.id
    assert "email" not in comment["relationships"]["user"]


@pytest.mark.parametrize(
    "resource_type, resource_id, content",
    [
        ("topic", 1, "内容"),
        ("question", "abc", "内容"),
        ("question", 0, "内容"),
        ("question", 1, "   "),
        ("question", 1, None),
    ],
)
def test_create_rejects_invalid_input(comment_service, author, resource_type, resource_id, content):
    with pytest.raises(ValidationError):
        comment_service.create(author.id, resource_type, resource_id, content)
    assert Comment.query.count() == 0


def test_get_hides_deleted_comment(comment_service, author, make_comment):
    comment = make_comment(author)
    comment_service.delete(comment["id"])

    assert comment_service.get(comment["id"]) is None
    with pytest.raises(NotFoundError):
        comment_service.get_or_fail(comment["id"])
    assert comment_service.get(comment["id"], include_deleted=True)["is_deleted"] is True


def test_get_or_fail_missing(comment_service):
    with pytest.raises(NotFoundError):
        comment_service.get_or_fail(404)


# ----------------------- 列表 -----------------------

def test_list_excludes_soft_deleted_by_default(comment_service, author, make_comment):
    kept = make_comment(author, "保留")
    removed = make_comment(author, "删除")
    comment_service.delete(removed["id"])

    assert _ids(comment_service.get_list({})) == [kept["id"]]
    assert _ids(comment_service.get_list({"is_deleted": True})) == [removed["id"]]


def test_list_filters_by_whitelisted_query_params(comment_service, author, other_user, make_comment):
    mine = make_comment(author, resource_type="article", resource_id=3)
    make_comment(other_user, resource_type="question", resource_id=3)

    result = comment_service.get_list({}, {"user_id": str(author.id), "content": "x"})
    assert _ids(result) == [mine["id"]]

    result = comment_service.get_list({}, {"resource_type": "article", "resource_id": "3"})
    assert _ids(result) == [mine["id"]]


def test_list_query_cannot_reach_deleted_rows(comment_service, author, make_comment):
    removed = make_comment(author)
    comment_service.delete(removed["id"])

    assert _ids(comment_service.get_list({}, {"is_deleted": "1"})) == []


def test_list_invalid_filter_value_is_dropped(comment_service, author, other_user, make_comment):
    make_comment(author)
    make_comment(other_user)

    items, total, _page, _per_page = comment_service.get_list({}, {"user_id": "abc"})
    assert total == 2
    assert len(items) == 2


def test_list_order_by_vote_count(comment_service, author, other_user, manager, make_comment):
    low = make_comment(author, "low")
    high = make_comment(author, "high")
    mid = make_comment(author, "mid")
    for user in (author, other_user, manager):
        comment_service.add_vote(user.id, high["id"], "up")
    comment_service.add_vote(author.id, mid["id"], "up")

    assert _ids(comment_service.get_list({}, {"order": "-vote_count"})) == [high["id"], mid["id"], low["id"]]
    assert _ids(comment_service.get_list({}, {"order": "vote_count"})) == [low["id"], mid["id"], high["id"]]


def test_list_pagination(comment_service, author, make_comment):
    for i in range(5):
        make_comment(author, f"第 {i} 条")

    items, total, page, per_page = comment_service.get_list({}, {"page": "2", "per_page": "2"})
    assert (total, page, per_page) == (5, 2, 2)
    assert len(items) == 2

    _items, _total, _page, per_page = comment_service.get_list({}, {"per_page": "1000"})
    assert per_page == comment_service.settings.page_size_max


def test_list_attaches_current_user_vote(comment_service, author, other_user, make_comment):
    voted = make_comment(author)
    not_voted = make_comment(author)
    comment_service.add_vote(other_user.id, voted["id"], "down")

    items, *_ = comment_service.get_list({}, current_user_id=other_user.id, include_vote_info=True)
    voting = {item["id"]: item["relationships"]["voting"] for item in items}
    assert voting == {voted["id"]: "down", not_voted["id"]: ""}

    items, *_ = comment_service.get_list({})
    assert "voting" not in items[0]["relationships"]


# ----------------------- 更新 -----------------------

def test_update_content(comment_service, author, make_comment, get_row):
    comment = make_comment(author, "旧内容")
    comment_service.update(comment["id"], "新内容")
    assert get_row(comment["id"]).content == "新内容"


def test_update_missing_comment_changes_nothing(comment_service, author, make_comment, get_row):
    comment = make_comment(author, "原内容")
    with pytest.raises(NotFoundError):
        comment_service.update(comment["id"] + 100, "新内容")
    assert get_row(comment["id"]).content == "原内容"
    assert Comment.query.count() == 1


def test_update_deleted_comment_is_not_found(comment_service, author, make_comment):
    comment = make_comment(author)
    comment_service.delete(comment["id"])
    with pytest.raises(NotFoundError):
        comment_service.update(comment["id"], "新内容")


@pytest.mark.parametrize("content", ["", "   ", None, "长" * 1001])
def test_update_rejects_invalid_content(comment_service, author, make_comment, get_row, content):
    comment = make_comment(author, "原内容")
    with pytest.raises(ValidationError):
        comment_service.update(comment["id"], content)
    assert get_row(comment["id"]).content == "原内容"


def test_update_and_delete_stamp_times_from_database_clock(comment_service, author, make_comment, get_row):
    comment = make_comment(author)
    comment_service.update(comment["id"], "新内容")
    row = get_row(comment["id"])
    assert row.updated_at is not None
    assert row.updated_at >= row.created_at

    comment_service.delete(comment["id"], deleted_by=author.id)
    row = get_row(comment["id"])
    assert row.deleted_at is not None
    assert row.deleted_at >= row.created_at


# ----------------------- 删除 / 回收站 -----------------------

def test_delete_is_idempotent(comment_service, author, manager, make_comment, get_row):
    comment = make_comment(author)
    assert comment_service.delete(comment["id"], deleted_by=manager.id) is True
    first = get_row(comment["id"])
    deleted_at, deleted_by = first.deleted_at, first.deleted_by

    assert comment_service.delete(comment["id"], deleted_by=author.id) is False
    second = get_row(comment["id"])
    assert second.is_deleted is True
    assert (second.deleted_at, second.deleted_by) == (deleted_at, deleted_by)


def test_delete_missing_comment(comment_service):
    with pytest.raises(NotFoundError):
        comment_service.delete(12345)


def test_delete_multiple_skips_missing_ids(comment_service, author, make_comment, get_row):
    a = make_comment(author)
    b = make_comment(author)
    comment_service.delete(b["id"])

    changed = comment_service.delete_multiple([a["id"], b["id"], 999])
    assert changed == 1
    assert get_row(a["id"]).is_deleted is True


def test_restore_and_restore_multiple(comment_service, author, make_comment):
    a = make_comment(author)
    b = make_comment(author)
    comment_service.delete_multiple([a["id"], b["id"]])

    assert comment_service.restore(a["id"]) is True
    assert comment_service.restore(a["id"]) is False
    assert sorted(_ids(comment_service.get_list({}))) == [a["id"]]

    assert comment_service.restore_multiple([a["id"], b["id"], 999]) == 1
    assert sorted(_ids(comment_service.get_list({}))) == sorted([a["id"], b["id"]])


def test_destroy_removes_comment_and_votes(comment_service, author, other_user, make_comment, get_row):
    comment = make_comment(author)
    comment_service.add_vote(other_user.id, comment["id"], "up")
    comment_service.delete(comment["id"])

    comment_service.destroy(comment["id"])
    assert get_row(comment["id"]) is None
    assert Vote.query.count() == 0
    with pytest.raises(NotFoundError):
        comment_service.destroy(comment["id"])


def test_destroy_multiple(comment_service, author, make_comment):
    a = make_comment(author)
    b = make_comment(author)
    assert comment_service.destroy_multiple([a["id"], b["id"], 999]) == 2
    assert Comment.query.count() == 0


# ----------------------- 投票 -----------------------

def test_add_vote_twice_keeps_single_vote_with_latest_type(comment_service, author, other_user, make_comment):
    comment = make_comment(author)
    comment_service.add_vote(other_user.id, comment["id"], "up")
    comment_service.add_vote(other_user.id, comment["id"], "down")

    votes = Vote.query.filter_by(user_id=other_user.id, votable_id=comment["id"]).all()
    assert len(votes) == 1
    assert votes[0].type == "down"
    assert comment_service.get_vote_count(comment["id"]) == 1
    assert comment_service.get_vote_count(comment["id"], "up") == 0


def test_add_vote_retries_after_unique_conflict(monkeypatch, comment_service, author, other_user, make_comment, get_row):
    comment = make_comment(author)
    comment_service.add_vote(other_user.id, comment["id"], "up")

    original_get = VoteRepository.get
    calls = []

    def stale_get(user_id, votable_type, votable_id):
        # 第一次查询模拟并发窗口：看不到已有投票，插入时触发唯一约束
        calls.append(votable_id)
        if len(calls) == 1:
            return None
        return original_get(user_id, votable_type, votable_id)

    monkeypatch.setattr(VoteRepository, "get", staticmethod(stale_get))
    comment_service.add_vote(other_user.id, comment["id"], "down")

    assert len(calls) == 2
    votes = Vote.query.filter_by(user_id=other_user.id, votable_id=comment["id"]).all()
    assert len(votes) == 1
    assert votes[0].type == "down"
    assert comment_service.get_vote_count(comment["id"]) == 1
    assert get_row(comment["id"]).vote_count == 1


def test_vote_count_returns_to_previous_after_delete_vote(comment_service, author, other_user, make_comment, get_row):
    comment = make_comment(author)
    comment_service.add_vote(author.id, comment["id"], "up")
    before = comment_service.get_vote_count(comment["id"])

    comment_service.add_vote(other_user.id, comment["id"], "up")
    assert comment_service.get_vote_count(comment["id"]) == before + 1

    comment_service.delete_vote(other_user.id, comment["id"])
    assert comment_service.get_vote_count(comment["id"]) == before
    assert get_row(comment["id"]).vote_count == before


def test_delete_vote_without_vote_is_noop(comment_service, author, other_user, make_comment):
    comment = make_comment(author)
    comment_service.delete_vote(other_user.id, comment["id"])
    assert comment_service.get_vote_count(comment["id"]) == 0


def test_add_vote_rejects_unknown_type(comment_service, author, make_comment):
    comment = make_comment(author)
    with pytest.raises(ValidationError):
        comment_service.add_vote(author.id, comment["id"], "love")
    assert Vote.query.count() == 0


def test_add_vote_on_deleted_comment(comment_service, author, other_user, make_comment):
    comment = make_comment(author)
    comment_service.delete(comment["id"])
    with pytest.raises(NotFoundError):
        comment_service.add_vote(other_user.id, comment["id"], "up")
    with pytest.raises(NotFoundError):
        comment_service.add_vote(other_user.id, 999, "up")


def test_get_voters(comment_service, author, other_user, manager, make_comment):
    comment = make_comment(author)
    comment_service.add_vote(other_user.id, comment["id"], "up")
    comment_service.add_vote(manager.id, comment["id"], "down")

    ids, total, *_ = comment_service.get_voters(comment["id"])
    assert total == 2
    assert sorted(ids) == sorted([other_user.id, manager.id])

    users, total, *_ = comment_service.get_voters(comment["id"], "down", include_user_info=True)
    assert total == 1
    assert users[0]["id"] == manager.id
    assert users[0]["vote_type"] == "down"
    assert "email" not in users[0]

    with pytest.raises(ValidationError):
        comment_service.get_voters(comment["id"], "sideways")


def test_vote_count_column_tracks_votes(comment_service, author, other_user, make_comment):
    comment = make_comment(author)
    comment_service.add_vote(other_user.id, comment["id"], "up")
    comment_service.add_vote(author.id, comment["id"], "down")

    db.session.expire_all()
    data = comment_service.get_or_fail(comment["id"])
    assert data["vote_count"] == comment_service.get_vote_count(comment["id"]) == 2
