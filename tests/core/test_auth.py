"""
Unit tests for credential checks and token issuing.
"""

import time

import pytest
from authlib.jose import JoseError, JsonWebToken, jwt

from bookapi.auth import JwtTokenIssuer, check_credentials, get_token_issuer
from bookapi.config import APIConfig, config

SECRET = "test-secret-key"


@pytest.fixture
def issuer():
    """Create a token issuer with known settings."""
    return JwtTokenIssuer(
        secret_key=SECRET,
        issuer="test-issuer",
        audience="test-audience",
        expiry_minutes=30
    )


class TestCheckCredentials:
    """Test cases for the built-in account check."""

    def test_valid_credentials(self):
        assert check_credentials("admin", "password") is True

    @pytest.mark.parametrize("username,password", [
        ("user", "wrongpassword"),
        ("admin", "wrong"),
        ("Admin", "password"),
        ("admin", "Password"),
        ("", ""),
        ("admin ", "password"),
    ])
    def test_invalid_credentials(self, username, password):
        """Test that anything but the exact pair is rejected."""
        assert check_credentials(username, password) is False

    def test_non_ascii_input(self):
        """Test that non-ASCII input is rejected rather than erroring."""
        assert check_credentials("ädmin", "pässword") is False


class TestJwtTokenIssuer:
    """Test cases for JwtTokenIssuer."""

    def test_claims(self, issuer):
        """Test the claim set of an issued token."""
        token = issuer.generate_token("admin")
        claims = jwt.decode(token, SECRET)

        assert claims["sub"] == "admin"
        assert claims["name"] == "admin"
        assert claims["iss"] == "test-issuer"
        assert claims["aud"] == "test-audience"
        assert claims["jti"]
        assert claims["exp"] - claims["iat"] == 30 * 60

    def test_header_uses_hs256(self, issuer):
        """Test that tokens are signed with HS256."""
        claims = jwt.decode(issuer.generate_token("admin"), SECRET)

        assert claims.header["alg"] == "HS256"

    def test_unique_token_ids(self, issuer):
        """Test that every token carries a distinct jti."""
        first = jwt.decode(issuer.generate_token("admin"), SECRET)
        second = jwt.decode(issuer.generate_token("admin"), SECRET)

        assert first["jti"] != second["jti"]

    def test_token_is_string(self, issuer):
        token = issuer.generate_token("admin")

        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_decode_round_trip(self, issuer):
        """Test that decode_token accepts its own tokens."""
        claims = issuer.decode_token(issuer.generate_token("admin"))

        assert claims["sub"] == "admin"

    def test_decode_rejects_wrong_secret(self, issuer):
        """Test that a token signed with another key is rejected."""
        other = JwtTokenIssuer("another-secret", "test-issuer", "test-audience", 30)

        with pytest.raises(JoseError):
            issuer.decode_token(other.generate_token("admin"))

    def test_decode_rejects_expired(self, issuer):
        """Test that an expired token is rejected."""
        now = int(time.time())
        payload = {"sub": "admin", "iat": now - 7200, "exp": now - 3600}
        expired = jwt.encode({"alg": "HS256"}, payload, SECRET).decode()

        with pytest.raises(JoseError):
            issuer.decode_token(expired)

    def test_decode_rejects_garbage(self, issuer):
        with pytest.raises(JoseError):
            issuer.decode_token("not-a-token")

    @pytest.mark.parametrize("algorithm", ["RS256", "ES256", "EdDSA"])
    def test_decode_rejects_asymmetric_algorithms(self, issuer, forge_token, algorithm):
        """Test that a token naming a public-key algorithm is rejected."""
        token = forge_token({"alg": algorithm, "typ": "JWT"}, {"sub": "admin"})

        with pytest.raises(JoseError):
            issuer.decode_token(token)

    def test_decode_rejects_other_hmac_algorithm(self, issuer):
        """Test that only the configured HMAC algorithm is accepted."""
        now = int(time.time())
        payload = {"sub": "admin", "iat": now, "exp": now + 600}
        token = JsonWebToken(["HS512"]).encode({"alg": "HS512"}, payload, SECRET).decode()

        with pytest.raises(JoseError):
            issuer.decode_token(token)

    def test_from_config(self):
        """Test building an issuer from settings."""
        settings = APIConfig(jwt_secret_key="abc", jwt_issuer="iss", jwt_audience="aud", jwt_expiry_minutes=5)

        built = JwtTokenIssuer.from_config(settings)

        assert built.secret_key == "abc"
        assert built.issuer == "iss"
        assert built.audience == "aud"
        assert built.expiry_minutes == 5
        assert built.algorithm == "HS256"

    def test_get_token_issuer_uses_global_config(self):
        assert get_token_issuer().secret_key == config.jwt_secret_key
