import logging

from flask import Blueprint, g

from controllers.auth_helpers import auth_required
from extensions.jwt import revoke_token
from utils.response import json_response

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/logout")
@auth_required()
def logout():
    """将当前 token 加入 Redis 黑名单"""
    revoke_token(g.current_token)
    logger.info("user %s logged out", g.current_user.id)
    return json_response(message="已退出登录")
