"""
Application settings for the FHIR resource service.

- Defaults are intended for local development.
- For testing, construct Settings directly or override get_settings.
- For production, set environment variables to override fields
  (nested fields use a double underscore, e.g. ``AUTH__CLIENT_ID``).
"""

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CLIENT_CREDENTIALS_GRANT = "client_credentials"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Environments in which upstream TLS verification is disabled
INSECURE_ENVIRONMENTS = frozenset({"local", "dev"})


class AssertionConfig(BaseModel):
    """Claims used to build the signed jwt-bearer assertion."""

    iss: str = ""
    scope: str = ""
    aud: str = ""
    ods: str = ""
    usr: str = ""
    sub: str | None = None
    azp: str = ""


class AuthHostConfig(BaseModel):
    """Upstream OAuth2 token endpoint configuration."""

    host: str = Field(default="http://localhost:8080", description="Token server base URL")
    path: str = Field(default="/oauth/token", description="Token endpoint path")
    proxy: str | None = None
    client_id: str = ""
    client_secret: str = ""
    grant_type: str = CLIENT_CREDENTIALS_GRANT
    assertion: AssertionConfig = Field(default_factory=AssertionConfig)
    signing_private_key_file: str | None = Field(
        default=None,
        description="PEM private key used to sign jwt-bearer assertions",
    )
    signing_passphrase: str | None = None
    timeout: float = 30.0


class ApiHostConfig(BaseModel):
    """Upstream FHIR server configuration."""

    host: str = Field(default="http://localhost:8080/fhir", description="FHIR base URL")
    proxy: str | None = None
    cert_file: str | None = Field(default=None, description="mTLS client certificate")
    private_key_file: str | None = Field(default=None, description="mTLS client key")
    ca_file: str | None = Field(default=None, description="CA bundle for the FHIR server")
    passphrase: str | None = None
    timeout: float = 30.0


class Settings(BaseSettings):
    """FHIR resource service configuration."""

    environment: str = Field(
        default="local",
        description="Deployment environment: local, dev or production",
    )
    log_level: str = "INFO"

    api: ApiHostConfig = Field(default_factory=ApiHostConfig)
    auth: AuthHostConfig = Field(default_factory=AuthHostConfig)

    session_jwt_secret: str = Field(
        default="local-session-secret",
        description="HS256 secret used to verify client session tokens",
    )
    session_cache_ttl: float = Field(
        default=300.0,
        description="Seconds of inactivity after which a session cache is dropped",
    )
    nhs_number_mapping: dict[str, str] = Field(
        default_factory=dict,
        description="Patient id remapping applied in the dev environment",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @property
    def verify_upstream_tls(self) -> bool:
        """Whether upstream certificates are validated."""
        return self.environment not in INSECURE_ENVIRONMENTS


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
