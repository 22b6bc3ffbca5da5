import uuid

import pytest

from app import create_app
from extensions.database import db
from extensions.jwt import issue_token
from models import Comment, User
from tests.utils.api_client import APIClient


@pytest.fixture()
def app():
    """提供测试用的 Flask 应用上下文（使用内存数据库）。"""

    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def comment_service(app):
    return app.extensions["comment_service"]


def _make_user(role: str = "user", prefix: str = "user") -> User:
    suffix = uuid.uuid4().hex[:8]
    user = User(
        username=f"{prefix}_{suffix}",
        email=f"{prefix}_{suffix}@example.com",
        role=role,
        active=True,
        password_version=1,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def author(app):
    return _make_user(prefix="author")


@pytest.fixture()
def other_user(app):
    return _make_user(prefix="other")


@pytest.fixture()
def manager(app):
    return _make_user(role="manager", prefix="manager")


@pytest.fixture()
def token_for(app):
    def _token(user: User) -> str:
        return issue_token(user)
    return _token


@pytest.fixture()
def api_client(app):
    """匿名 API 客户端，需要登录时调用 set_token"""
    return APIClient(app.test_client())


@pytest.fixture()
def make_comment(comment_service):
    """
    创建评论，返回序列化后的 dict
    """
    def _create(user: User, content: str = "写得不错", resource_type: str = "question", resource_id: int = 1):
        return comment_service.create(user.id, resource_type, resource_id, content)
    return _create


@pytest.fixture()
def get_row():
    """直接读取数据库行（包含已删除）"""
    def _get(comment_id: int):
        db.session.expire_all()
        return db.session.get(Comment, comment_id)
    return _get
