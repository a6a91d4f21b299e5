"""
Unit tests for the authentication gate and Authorization header parsing.
"""

import base64

import pytest
from prometheus_client import REGISTRY

from policy_update.config.provider import AuthConfig
from policy_update.errors import AuthenticationFailure
from policy_update.modules.auth import AuthFactory, BearerToken, Identity, UsernamePassword
from policy_update.modules.auth.service import Authenticator, parse_authorization


def _basic(username: str, password: str) -> str:
    return "Basic " + base64.b64encode(f"{username}:{password}".encode()).decode()


def auth_count(status: str) -> float:
    value = REGISTRY.get_sample_value(
        "gw_ncfspolicyupdate_authenticate_received_total", {"status": status}
    )
    return value or 0.0


@pytest.fixture
def auth_config():
    return AuthConfig(
        username="operator",
        password="s3cret",
        signing_key="unit-test-signing-key-0123456789abcdef",
        issuer="auth-app",
        audience="any",
        token_ttl_seconds=300,
        cache_ttl_seconds=600,
        cache_max_entries=16,
    )


@pytest.fixture
def stack(auth_config):
    return AuthFactory.build(auth_config)


class TestParseAuthorization:

    def test_basic(self):
        credential = parse_authorization(_basic("operator", "pa:ss"))

        assert credential == UsernamePassword("operator", "pa:ss")

    def test_bearer(self):
        assert parse_authorization("Bearer abc.def.ghi") == BearerToken("abc.def.ghi")

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_missing(self, header):
        with pytest.raises(AuthenticationFailure) as exc_info:
            parse_authorization(header)

        assert exc_info.value.metric_status == "missing_credentials"

    @pytest.mark.parametrize("header", [
        "Basic !!!",
        "Basic " + base64.b64encode(b"no-colon").decode(),
        "Bearer ",
        "Digest abc",
        "Token abc",
    ])
    def test_malformed(self, header):
        with pytest.raises(AuthenticationFailure):
            parse_authorization(header)


class TestAuthenticator:

    def test_basic_success(self, stack):
        identity = stack.authenticator.authenticate(_basic("operator", "s3cret"))

        assert identity == Identity(subject="operator", extensions={"id": "1"})

    def test_bearer_success(self, stack):
        token = stack.issuer.issue(Identity(subject="operator"))

        identity = stack.authenticator.authenticate(f"Bearer {token}")

        assert identity.subject == "operator"

    def test_scheme_not_allowed_for_route(self, stack):
        token = stack.issuer.issue(Identity(subject="operator"))

        with pytest.raises(AuthenticationFailure):
            stack.authenticator.authenticate(f"Bearer {token}", allowed_schemes=("basic",))

    def test_no_strategies_enabled(self):
        with pytest.raises(AuthenticationFailure):
            Authenticator().authenticate(_basic("operator", "s3cret"))

    def test_schemes(self, stack):
        assert set(stack.authenticator.schemes) == {"basic", "bearer"}

    def test_factory_shares_one_cache(self, stack):
        token = stack.issuer.issue(Identity(subject="operator"))

        stack.authenticator.authenticate(_basic("operator", "s3cret"))
        stack.authenticator.authenticate(f"Bearer {token}")

        assert len(stack.cache) == 2

    def test_metrics_recorded(self, stack):
        ok_before = auth_count("ok")
        user_error_before = auth_count("user_error")
        missing_before = auth_count("missing_credentials")

        stack.authenticator.authenticate(_basic("operator", "s3cret"))
        with pytest.raises(AuthenticationFailure):
            stack.authenticator.authenticate(_basic("operator", "wrong"))
        with pytest.raises(AuthenticationFailure):
            stack.authenticator.authenticate(None)

        assert auth_count("ok") == ok_before + 1
        assert auth_count("user_error") == user_error_before + 1
        assert auth_count("missing_credentials") == missing_before + 1

    def test_failure_is_logged_with_reason(self, stack, caplog):
        with pytest.raises(AuthenticationFailure):
            stack.authenticator.authenticate(_basic("operator", "wrong"))

        assert "invalid credentials" in caplog.text
        assert "wrong" not in caplog.text
