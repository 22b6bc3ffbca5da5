# extensions/jwt.py
"""
HS256 访问令牌的签发与校验。
令牌载荷：sub(用户ID) / role / pwdv(密码版本) / iat / exp / jti。
注销后的 jti 记入 Redis 黑名单，见 repositories.token_repository。
"""
import base64
import hashlib
import hmac
import json
import time
import uuid

from flask import current_app

from repositories.token_repository import TokenRepository

_HEADER = {"alg": "HS256", "typ": "JWT"}


class TokenError(ValueError):
    pass


def _urlsafe_encode(obj) -> str:
    raw = json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _urlsafe_decode(segment: str):
    padded = segment + "=" * (-len(segment) % 4)
    return json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))


def _signature(signing_input: str) -> str:
    key = current_app.config["JWT_SECRET_KEY"].encode("utf-8")
    digest = hmac.new(key, signing_input.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def issue_token(user, ttl: int | None = None) -> str:
    """为用户签发访问令牌，ttl 缺省取 JWT_EXPIRES_SECONDS"""
    if ttl is None:
        ttl = int(current_app.config.get("JWT_EXPIRES_SECONDS", 8 * 3600))
    issued_at = int(time.time())
    claims = {
        "sub": user.id,
        "role": user.role,
        "pwdv": user.password_version,
        "iat": issued_at,
        "exp": issued_at + ttl,
        "jti": uuid.uuid4().hex,
    }
    signing_input = f"{_urlsafe_encode(_HEADER)}.{_urlsafe_encode(claims)}"
    return f"{signing_input}.{_signature(signing_input)}"


def decode_token(token: str, check_revoked: bool = True) -> dict:
    parts = token.split(".") if isinstance(token, str) else []
    if len(parts) != 3:
        raise TokenError("token不合法")
    header_seg, claims_seg, signature = parts
    expected = _signature(f"{header_seg}.{claims_seg}").encode("ascii")
    if not hmac.compare_digest(expected, signature.encode("utf-8")):
        raise TokenError("签名不匹配")
    try:
        claims = _urlsafe_decode(claims_seg)
    except ValueError:
        raise TokenError("token不合法")
    if not isinstance(claims, dict):
        raise TokenError("token不合法")

    exp = claims.get("exp")
    if exp and time.time() > exp:
        raise TokenError("token已过期")
    if check_revoked and current_app.config.get("TOKEN_REVOCATION_ENABLED", True):
        jti = claims.get("jti")
        if jti and TokenRepository.is_revoked(jti):
            raise TokenError("token已失效")
    return claims


def revoke_token(token: str) -> bool:
    """
    注销令牌：jti 写入黑名单直到原过期时间。
    令牌无效或已过期时什么也不做，返回 False。
    """
    try:
        claims = decode_token(token, check_revoked=False)
    except TokenError:
        return False
    jti, exp = claims.get("jti"), claims.get("exp")
    if not jti or not exp:
        return False
    TokenRepository.revoke(jti, max(int(exp - time.time()), 1))
    return True
