# extensions/redis_client.py
import redis
from flask import current_app


def get_redis() -> redis.Redis:
    """当前应用的 Redis 连接，首次使用时按 REDIS_URL 创建并缓存在 app.extensions 中"""
    client = current_app.extensions.get("redis")
    if client is None:
        client = redis.from_url(current_app.config["REDIS_URL"], decode_responses=True)
        current_app.extensions["redis"] = client
    return client
