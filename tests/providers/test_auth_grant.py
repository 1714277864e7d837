"""Tests for the OAuth2 grant strategies."""

import json
from pathlib import Path

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from src.exceptions import ConfigurationError
from src.providers.auth_grant import (
    ASSERTION_VALIDITY_SECONDS,
    AssertionBearerGrant,
    ClientCredentialsGrant,
    ReasonCode,
    create_auth_grant_provider,
)
from src.settings import JWT_BEARER_GRANT, AssertionConfig, AuthHostConfig


@pytest.fixture
def assertion_config() -> AssertionConfig:
    return AssertionConfig(
        iss="issuer-1",
        scope="patient/*.read",
        aud="https://auth.example.org/token",
        ods="Y12345",
        usr="user-1",
        azp="azp-1",
    )


@pytest.fixture
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def signing_key_file(tmp_path: Path, rsa_key: rsa.RSAPrivateKey) -> Path:
    """Passphrase-protected PEM signing key."""
    path = tmp_path / "signing.key"
    path.write_bytes(
        rsa_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.BestAvailableEncryption(b"secret"),
        )
    )
    return path


class TestCreateAuthGrantProvider:
    """Tests for grant strategy selection."""

    def test_client_credentials(self) -> None:
        provider = create_auth_grant_provider(
            AuthHostConfig(grant_type="client_credentials"), "production"
        )

        assert isinstance(provider, ClientCredentialsGrant)

    def test_jwt_bearer(self, assertion_config: AssertionConfig) -> None:
        provider = create_auth_grant_provider(
            AuthHostConfig(grant_type=JWT_BEARER_GRANT, assertion=assertion_config), "local"
        )

        assert isinstance(provider, AssertionBearerGrant)

    def test_invalid_grant_type_names_value(self) -> None:
        with pytest.raises(ConfigurationError, match="foo"):
            create_auth_grant_provider(AuthHostConfig(grant_type="foo"), "local")

    def test_signed_grant_requires_key(self, assertion_config: AssertionConfig) -> None:
        with pytest.raises(ConfigurationError):
            create_auth_grant_provider(
                AuthHostConfig(grant_type=JWT_BEARER_GRANT, assertion=assertion_config),
                "production",
            )


class TestClientCredentialsGrant:
    def test_form_contains_grant_type_only(self) -> None:
        provider = ClientCredentialsGrant(AuthHostConfig(grant_type="client_credentials"))

        assert provider.build_form(ReasonCode.READ, "9434765919") == {
            "grant_type": "client_credentials"
        }


class TestAssertionBearerGrant:
    """Tests for the jwt-bearer assertion."""

    def test_local_assertion_is_unsigned_json(self, assertion_config: AssertionConfig) -> None:
        provider = AssertionBearerGrant(
            AuthHostConfig(grant_type=JWT_BEARER_GRANT, assertion=assertion_config), "local"
        )

        form = provider.build_form(ReasonCode.READ, "9434765919")

        assert form["grant_type"] == JWT_BEARER_GRANT
        claims = json.loads(form["assertion"])
        assert claims["iss"] == "issuer-1"
        assert claims["sub"] == "issuer-1"
        assert claims["aud"] == "https://auth.example.org/token"
        assert claims["ods"] == "Y12345"
        assert claims["rsn"] == 2
        assert claims["pat"] == {"nhs": "9434765919"}
        assert claims["exp"] - claims["iat"] == ASSERTION_VALIDITY_SECONDS

    def test_each_assertion_has_fresh_jti(self, assertion_config: AssertionConfig) -> None:
        provider = AssertionBearerGrant(
            AuthHostConfig(grant_type=JWT_BEARER_GRANT, assertion=assertion_config), "local"
        )

        first = provider.build_claims(ReasonCode.READ)
        second = provider.build_claims(ReasonCode.READ)

        assert first["jti"] != second["jti"]

    def test_system_level_call_omits_patient(self, assertion_config: AssertionConfig) -> None:
        provider = AssertionBearerGrant(
            AuthHostConfig(grant_type=JWT_BEARER_GRANT, assertion=assertion_config), "local"
        )

        claims = provider.build_claims(ReasonCode.WRITE, "9434765919")

        assert claims["rsn"] == 5
        assert "pat" not in claims

    def test_configured_subject_overrides_issuer(self) -> None:
        config = AuthHostConfig(
            grant_type=JWT_BEARER_GRANT, assertion=AssertionConfig(iss="issuer-1", sub="subject-1")
        )
        provider = AssertionBearerGrant(config, "local")

        assert provider.build_claims(ReasonCode.READ)["sub"] == "subject-1"

    def test_signed_assertion(
        self,
        assertion_config: AssertionConfig,
        signing_key_file: Path,
        rsa_key: rsa.RSAPrivateKey,
    ) -> None:
        """Outside local the assertion is an RS256 JWT signed with the configured key."""
        config = AuthHostConfig(
            grant_type=JWT_BEARER_GRANT,
            assertion=assertion_config,
            signing_private_key_file=str(signing_key_file),
            signing_passphrase="secret",
        )
        provider = create_auth_grant_provider(config, "production")

        form = provider.build_form(ReasonCode.READ, "9434765919")

        assert jwt.get_unverified_header(form["assertion"])["alg"] == "RS256"
        claims = jwt.decode(
            form["assertion"],
            rsa_key.public_key(),
            algorithms=["RS256"],
            audience="https://auth.example.org/token",
        )
        assert claims["pat"] == {"nhs": "9434765919"}
        assert claims["scope"] == "patient/*.read"

    def test_wrong_passphrase_is_configuration_error(
        self, assertion_config: AssertionConfig, signing_key_file: Path
    ) -> None:
        config = AuthHostConfig(
            grant_type=JWT_BEARER_GRANT,
            assertion=assertion_config,
            signing_private_key_file=str(signing_key_file),
            signing_passphrase="wrong",
        )

        with pytest.raises(ConfigurationError):
            AssertionBearerGrant(config, "production")
