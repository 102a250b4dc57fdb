from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .ad import DirectoryConfig


class Settings(BaseSettings):
    # App / sessions
    app_name: str = "AD Auth"
    secret_key: str = Field(..., alias="APP_SECRET_KEY")
    session_issuer: str = Field("adauth", alias="SESSION_ISSUER")
    session_audience: str = Field("adauth-web", alias="SESSION_AUDIENCE")
    session_cookie: str = Field("adauth_session", alias="SESSION_COOKIE")
    session_max_age_seconds: int = Field(2 * 60 * 60, alias="SESSION_MAX_AGE_SECONDS")  # 2 часа
    cookie_secure: bool = Field(True, alias="APP_COOKIE_SECURE")

    # AD
    ad_host: str = Field(..., alias="AD_HOST")
    ad_domain: str = Field(..., alias="AD_DOMAIN")
    ad_port: int = Field(636, alias="AD_PORT")
    ad_use_ssl: bool = Field(True, alias="AD_USE_SSL")
    ad_starttls: bool = Field(False, alias="AD_STARTTLS")
    ad_base_dn: str = Field("", alias="AD_BASE_DN")
    ad_bind_username: str = Field(..., alias="AD_BIND_USERNAME")
    ad_bind_password: str = Field(..., alias="AD_BIND_PASSWORD")
    ad_password_attribute: str = Field("unicodePwd", alias="AD_PASSWORD_ATTRIBUTE")

    # TLS: AD_TLS_VALIDATE=false disables certificate checks (insecure)
    ad_tls_validate: bool = Field(True, alias="AD_TLS_VALIDATE")
    ad_ca_cert_file: str = Field("", alias="AD_CA_CERT_FILE")

    # Timeouts, seconds
    ad_connect_timeout: float = Field(5.0, alias="AD_CONNECT_TIMEOUT")
    ad_receive_timeout: float = Field(10.0, alias="AD_RECEIVE_TIMEOUT")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str = Field("", alias="LOG_FILE")
    log_retention_days: int = Field(30, alias="LOG_RETENTION_DAYS")

    model_config = SettingsConfigDict(populate_by_name=True, env_file=".env", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def ad_config_from_settings(s: Settings) -> DirectoryConfig:
    return DirectoryConfig(
        host=s.ad_host,
        domain=s.ad_domain,
        port=s.ad_port,
        use_ssl=s.ad_use_ssl,
        starttls=s.ad_starttls,
        bind_username=s.ad_bind_username,
        bind_password=s.ad_bind_password,
        tls_validate=s.ad_tls_validate,
        ca_cert_file=s.ad_ca_cert_file,
        base_dn=s.ad_base_dn,
        connect_timeout=s.ad_connect_timeout,
        receive_timeout=s.ad_receive_timeout,
        password_attribute=s.ad_password_attribute,
    )
