# app.py
from flask import Flask
from config.settings import get_config
from extensions.database import db, migrate
from extensions.logger import init_logger
from controllers.auth_controller import auth_bp
from controllers.comment_controller import comment_bp
from repositories.comment_repository import CommentRepository
from repositories.user_repository import UserRepository
from repositories.vote_repository import VoteRepository
from services.comment_service import CommentService, CommentSettings
from utils.response import json_response
from utils.exceptions import BizError

import models  # noqa: F401  注册模型，供 Flask-Migrate 检测


def init_services(app):
    """组装服务，只在启动时执行一次"""
    app.extensions["comment_service"] = CommentService(
        comment_repo=CommentRepository(),
        vote_repo=VoteRepository(),
        user_repo=UserRepository(),
        settings=CommentSettings.from_config(app.config),
    )


def create_app(config_name="development"):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # 初始化扩展
    db.init_app(app)
    migrate.init_app(app, db)
    init_logger(app)
    init_services(app)

    # 登录态
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    # 评论 / 投票 / 回收站
    app.register_blueprint(comment_bp)

    # 错误处理
    @app.errorhandler(404)
    def not_found(e):
        return json_response(message="接口不存在", code=404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return json_response(message="请求方法不允许", code=405)

    @app.errorhandler(500)
    def server_error(e):
        return json_response(message="服务器内部错误", code=500)

    @app.errorhandler(BizError)
    def _biz_err(e: BizError):
        return json_response(code=e.code, message=e.message, data=e.data)

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", port=8888, debug=True)
