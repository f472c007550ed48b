"""
Configuration for the esadmin command line

Settings come from the environment file of the selected environment
(``.env.<environment>`` for the manage CLI, ``.env.restore.<environment>`` for
the restore CLI), the process environment, and an optional
``esadmin.<environment>.yml`` next to the environment file.
"""

import logging
from pathlib import Path
from typing import Optional

from esadmin_core import ConfigurationError, RestoreDefaults
from esadmin_core.constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RECOVERY_TIMEOUT,
    ENVIRONMENTS,
)
from pydantic import (
    AliasChoices,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class Settings(BaseSettings):
    """
    Everything an environment file can hold. Names are case-insensitive, so
    ``ES_HOST`` in the file fills ``es_host``.
    """

    es_host: str = Field(validation_alias=AliasChoices("es_host", "target_es_host"))
    username: Optional[str] = None
    password: Optional[str] = None

    kibana_host: Optional[str] = None
    kibana_username: Optional[str] = None
    kibana_password: Optional[str] = None

    origin_es_host: Optional[str] = None
    origin_username: Optional[str] = None
    origin_password: Optional[str] = None

    snapshot_repository: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "snapshot_repository", "target_es_snapshot_repository"
        ),
    )
    default_excluded_indices: str = ""
    default_features_to_restore: str = ""
    default_include_global_state: bool = False
    default_ignore_unavailable: bool = False
    default_include_aliases: bool = True

    ca_certs: Optional[str] = None
    verify_certs: bool = True
    request_timeout: float = 30

    recovery_poll_interval: float = DEFAULT_POLL_INTERVAL
    recovery_timeout: float = DEFAULT_RECOVERY_TIMEOUT

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("es_host", "kibana_host", "origin_es_host")
    @classmethod
    def check_no_spaces(cls, v: Optional[str]) -> Optional[str]:
        if v and " " in v.strip():
            raise ValueError("must not contain spaces")
        return v.strip().rstrip("/") if v else v

    @field_validator("kibana_host")
    @classmethod
    def add_scheme(cls, v: Optional[str]) -> Optional[str]:
        if v and "://" not in v:
            return f"https://{v}"
        return v

    @field_validator("default_excluded_indices")
    @classmethod
    def check_exclusions(cls, v: str) -> str:
        for pattern in (p.strip() for p in v.split(",")):
            if pattern and not pattern.startswith("-"):
                raise ValueError(f'excluded pattern "{pattern}" must start with "-"')
        return v

    @field_validator("recovery_poll_interval", "recovery_timeout")
    @classmethod
    def check_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @model_validator(mode="after")
    def fill_defaults(self) -> "Settings":
        if self.kibana_username is None:
            self.kibana_username = self.username
        if self.kibana_password is None:
            self.kibana_password = self.password
        if self.origin_es_host is None:
            self.origin_es_host = self.es_host
        if self.origin_username is None:
            self.origin_username = self.username
        if self.origin_password is None:
            self.origin_password = self.password
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            dotenv_settings,
            env_settings,
            file_secret_settings,
            YamlConfigSettingsSource(settings_cls),
        )

    @property
    def restore_defaults(self) -> RestoreDefaults:
        return RestoreDefaults(
            excluded_indices=self.default_excluded_indices,
            features_to_restore=self.default_features_to_restore,
            include_global_state=self.default_include_global_state,
            ignore_unavailable=self.default_ignore_unavailable,
            include_aliases=self.default_include_aliases,
        )


def env_file_path(environment: str, env_dir=".", restore: bool = False) -> Path:
    prefix = ".env.restore" if restore else ".env"
    return Path(env_dir) / f"{prefix}.{environment}"


def load_settings(
    environment: str, env_dir=".", restore: bool = False, **overrides
) -> Settings:
    """
    Load the settings of one environment.

    :param environment: "test" or "prod"
    :param env_dir: directory holding the environment files
    :param restore: load ``.env.restore.<environment>`` instead of
        ``.env.<environment>``
    :param overrides: values that win over every file
    :returns: the validated settings
    :raises ConfigurationError: if the environment is unknown, the file is
        missing, or a value is invalid
    """
    if environment not in ENVIRONMENTS:
        raise ConfigurationError(
            f"Unknown environment {environment!r}; "
            f"expected one of {', '.join(ENVIRONMENTS)}"
        )
    env_file = env_file_path(environment, env_dir, restore)
    if not env_file.is_file():
        raise ConfigurationError(f"Environment file {env_file} not found")
    yaml_file = Path(env_dir) / f"esadmin.{environment}.yml"

    class EnvironmentSettings(Settings):
        model_config = SettingsConfigDict(env_file=env_file, yaml_file=yaml_file)

    try:
        settings = EnvironmentSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {env_file}: {e}") from e
    logging.getLogger("esadmin.config").info("Loaded settings from %s", env_file)
    return settings


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    """
    Send esadmin's log records to stderr: WARNING by default, INFO with
    ``verbose``, DEBUG with ``debug``.
    """
    logger = logging.getLogger("esadmin")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)
    if debug:
        logger.setLevel(logging.DEBUG)
    elif verbose:
        logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.WARNING)
    for name in ("elasticsearch", "elastic_transport", "urllib3"):
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)


def get_elasticsearch_config(settings: Settings, origin: bool = False) -> dict:
    """
    Keyword arguments for create_es_client, for the current cluster or for the
    cluster snapshots were taken on.
    """
    if origin:
        host, username, password = (
            settings.origin_es_host,
            settings.origin_username,
            settings.origin_password,
        )
    else:
        host = settings.es_host
        username, password = settings.username, settings.password
    return {
        "hosts": host,
        "username": username,
        "password": password,
        "ca_certs": settings.ca_certs,
        "verify_certs": settings.verify_certs,
        "request_timeout": settings.request_timeout,
    }


def get_kibana_config(settings: Settings) -> Optional[dict]:
    """
    Keyword arguments for KibanaClient, or None when no Kibana host is set.
    """
    if not settings.kibana_host:
        return None
    return {
        "host": settings.kibana_host,
        "username": settings.kibana_username,
        "password": settings.kibana_password,
        "verify": settings.ca_certs or settings.verify_certs,
        "timeout": settings.request_timeout,
    }
