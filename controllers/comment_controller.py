from flask import Blueprint, current_app, request

from controllers.auth_helpers import optional_auth
from services.comment_service import CommentService, TRASH_DEFAULT_ORDER
from services.role_service import RoleService
from utils.exceptions import BizError, ValidationError
from utils.query_params import parse_id_list
from utils.response import json_response, page_data


comment_bp = Blueprint("comment", __name__, url_prefix="/api")


@comment_bp.errorhandler(BizError)
def _biz_error(e: BizError):
    return json_response(code=e.code, message=e.message, data=e.data), e.code


def _service() -> CommentService:
    return current_app.extensions["comment_service"]


def _list_response(result):
    items, total, page, per_page = result
    return json_response(data=page_data(items, total, page, per_page))


def _comment_ids_or_fail():
    ids = parse_id_list(request.args.get("comment_id"), _service().settings.bulk_limit)
    if not ids:
        raise ValidationError("comment_id 不能为空")
    return ids


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("请求体必须为 JSON 对象")
    return data


def _vote_count_response(comment_id: int):
    return json_response(data={"vote_count": _service().get_vote_count(comment_id)})


# ----------------------- 列表 -----------------------

@comment_bp.get("/users/<int:user_id>/comments")
@optional_auth()
def get_list_by_user_id(user_id: int):
    """获取指定用户发表的评论列表"""
    role = RoleService.current()
    result = _service().get_list(
        {"user_id": user_id},
        request.args,
        current_user_id=role.user_id,
        include_vote_info=True,
    )
    return _list_response(result)


@comment_bp.get("/user/comments")
@optional_auth()
def get_my_list():
    """获取当前用户发表的评论列表"""
    user_id = RoleService.current().user_id_or_fail()
    result = _service().get_list(
        {"user_id": user_id},
        request.args,
        current_user_id=user_id,
        include_vote_info=True,
    )
    return _list_response(result)


@comment_bp.get("/comments")
@optional_auth()
def get_list():
    role = RoleService.current()
    result = _service().get_list(
        {},
        request.args,
        current_user_id=role.user_id,
        include_vote_info=True,
    )
    return _list_response(result)


@comment_bp.post("/comments")
@optional_auth()
def create_one():
    user_id = RoleService.current().user_id_or_fail()
    data = _json_body()
    comment = _service().create(
        user_id,
        data.get("resource_type"),
        data.get("resource_id"),
        data.get("content"),
    )
    return json_response(message="发表成功", data=comment, code=201)


@comment_bp.delete("/comments")
@optional_auth()
def delete_multiple():
    """批量删除评论（仅管理员）"""
    manager_id = RoleService.current().manager_id_or_fail()
    count = _service().delete_multiple(_comment_ids_or_fail(), deleted_by=manager_id)
    return json_response(message="删除成功", data={"count": count})


# ----------------------- 单条 -----------------------

@comment_bp.get("/comments/<int:comment_id>")
@optional_auth()
def get_one(comment_id: int):
    role = RoleService.current()
    # 管理员可查看已删除的评论
    comment = _service().get_or_fail(
        comment_id,
        current_user_id=role.user_id,
        include_vote_info=True,
        include_deleted=role.is_manager(),
    )
    return json_response(data=comment)


@comment_bp.patch("/comments/<int:comment_id>")
@optional_auth()
def update_one(comment_id: int):
    role = RoleService.current()
    service = _service()
    comment = service.get_or_fail(comment_id)
    role.editable_or_fail(comment["user_id"])

    data = _json_body()
    service.update(comment_id, data.get("content"))
    comment = service.get(comment_id, current_user_id=role.user_id, include_vote_info=True)
    return json_response(message="更新成功", data=comment)


@comment_bp.delete("/comments/<int:comment_id>")
@optional_auth()
def delete_one(comment_id: int):
    role = RoleService.current()
    service = _service()
    comment = service.get_or_fail(comment_id, include_deleted=True)
    user_id = role.editable_or_fail(comment["user_id"])
    service.delete(comment_id, deleted_by=user_id)
    return json_response(message="删除成功")


# ----------------------- 投票 -----------------------

@comment_bp.get("/comments/<int:comment_id>/voters")
@optional_auth()
def get_voters(comment_id: int):
    result = _service().get_voters(
        comment_id,
        request.args.get("type"),
        include_user_info=True,
        query_args=request.args,
    )
    return _list_response(result)


@comment_bp.post("/comments/<int:comment_id>/voters")
@optional_auth()
def add_vote(comment_id: int):
    user_id = RoleService.current().user_id_or_fail()
    data = _json_body()
    _service().add_vote(user_id, comment_id, data.get("type"))
    return _vote_count_response(comment_id)


@comment_bp.delete("/comments/<int:comment_id>/voters")
@optional_auth()
def delete_vote(comment_id: int):
    user_id = RoleService.current().user_id_or_fail()
    _service().delete_vote(user_id, comment_id)
    return _vote_count_response(comment_id)


# ----------------------- 回收站（仅管理员） -----------------------

@comment_bp.get("/trash/comments")
@optional_auth()
def get_deleted_list():
    manager_id = RoleService.current().manager_id_or_fail()
    result = _service().get_list(
        {"is_deleted": True},
        request.args,
        current_user_id=manager_id,
        include_vote_info=True,
        default_order=TRASH_DEFAULT_ORDER,
    )
    return _list_response(result)


@comment_bp.post("/trash/comments")
@optional_auth()
def restore_multiple():
    RoleService.current().manager_id_or_fail()
    count = _service().restore_multiple(_comment_ids_or_fail())
    return json_response(message="恢复成功", data={"count": count})


@comment_bp.delete("/trash/comments")
@optional_auth()
def destroy_multiple():
    RoleService.current().manager_id_or_fail()
    count = _service().destroy_multiple(_comment_ids_or_fail())
    return json_response(message="删除成功", data={"count": count})


@comment_bp.post("/trash/comments/<int:comment_id>")
@optional_auth()
def restore_one(comment_id: int):
    manager_id = RoleService.current().manager_id_or_fail()
    service = _service()
    service.restore(comment_id)
    comment = service.get(comment_id, current_user_id=manager_id, include_vote_info=True)
    return json_response(message="恢复成功", data=comment)


@comment_bp.delete("/trash/comments/<int:comment_id>")
@optional_auth()
def destroy_one(comment_id: int):
    RoleService.current().manager_id_or_fail()
    _service().destroy(comment_id)
    return json_response(message="删除成功")
