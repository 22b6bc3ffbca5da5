# repositories/token_repository.py
from extensions.redis_client import get_redis

REVOKED_PREFIX = "comment:jwt:revoked:"


class TokenRepository:
    """已注销令牌（按 jti）的 Redis 黑名单，过期后自动清除"""

    @staticmethod
    def revoke(jti: str, ttl_seconds: int):
        if not jti:
            return
        get_redis().setex(REVOKED_PREFIX + jti, ttl_seconds, "1")

    @staticmethod
    def is_revoked(jti: str) -> bool:
        return get_redis().exists(REVOKED_PREFIX + jti) == 1
