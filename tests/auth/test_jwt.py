# -*- coding: utf-8 -*-
import pytest

from extensions.jwt import TokenError, decode_token, issue_token, revoke_token


def test_issue_and_decode_token(app, author):
    token = issue_token(author)
    claims = decode_token(token)
    assert claims["sub"] == author.id
    assert claims["role"] == author.role
    assert claims["pwdv"] == author.password_version
    assert claims["exp"] > claims["iat"]


def test_two_tokens_have_distinct_jti(app, author):
    assert decode_token(issue_token(author))["jti"] != decode_token(issue_token(author))["jti"]


@pytest.mark.parametrize("token", ["", "a.b", "a.b.c", "中.文.签", None])
def test_malformed_token_is_rejected(app, token):
    with pytest.raises(TokenError):
        decode_token(token)


def test_tampered_claims_fail_signature(app, author, other_user):
    header, _claims, signature = issue_token(author).split(".")
    _h, forged_claims, _s = issue_token(other_user).split(".")
    with pytest.raises(TokenError):
        decode_token(f"{header}.{forged_claims}.{signature}")


def test_token_signed_with_other_secret_is_rejected(app, author):
    token = issue_token(author)
    app.config["JWT_SECRET_KEY"] = "another-secret"
    with pytest.raises(TokenError):
        decode_token(token)


def test_expired_token_is_rejected(app, author):
    token = issue_token(author, ttl=-1)
    with pytest.raises(TokenError):
        decode_token(token)


def test_revoke_invalid_token_is_noop(app):
    assert revoke_token("a.b.c") is False
