"""
Configuration loading for passive authentication.

Settings are read from ``config/<environment>.yaml`` at the project root, where
the environment comes from ``PASSIVE_AUTH_ENV`` (``development`` by default).
String values may reference environment variables as ``${VAR}`` or
``${VAR:-default}``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from passive_auth.exceptions import ConfigurationError

ENVIRONMENT_VAR = "PASSIVE_AUTH_ENV"
DEFAULT_ENVIRONMENT = "development"

SUPPORTED_DIGESTS = ("sha1", "sha224", "sha256", "sha384", "sha512")


class LoggingSettings(BaseModel):
    """Logging section of the configuration file."""

    model_config = ConfigDict(frozen=True)

    level: str = Field("INFO", description="Log level")
    format: str = Field("text", description="Log format (json/text)")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "OFF"]
        if v.upper() not in valid_levels:
            msg = f"Log level must be one of {valid_levels}"
            raise ValueError(msg)
        return v.upper()


class PassiveAuthConfig(BaseModel):
    """Tunable parameters of the verification pipeline."""

    model_config = ConfigDict(frozen=True)

    default_digest: str = Field(
        "sha256", description="Digest used with bare 'RSA'/'ECDSA' algorithm identifiers"
    )
    digest_overrides: dict[str, str] = Field(
        default_factory=dict, description="Signature algorithm identifier -> digest name"
    )
    rsa_default_exponent: int = Field(65537, description="Public exponent when none is supplied")
    pss_salt_length: Union[Literal["auto", "digest"], int] = Field(
        "auto", description="RSASSA-PSS salt length: auto, digest or a byte count"
    )
    ecdsa_signature_format: Literal["auto", "der", "plain"] = Field(
        "auto", description="ECDSA signature encoding: DER (r,s) sequence or plain r||s"
    )
    allowed_lds_versions: tuple[int, ...] = Field(
        (0, 1), description="Accepted LDSSecurityObject version numbers"
    )
    require_all_mrz_check_digits: bool = Field(
        True, description="Require every MRZ check digit, not just the composite"
    )
    parallel_branches: bool = Field(
        False, description="Run the MRZ branch on a worker thread"
    )
    max_workers: int = Field(4, ge=1, description="Thread pool size for batch verification")
    max_content_size: int = Field(
        65536, ge=1, description="Upper bound on signed content size in bytes"
    )
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("default_digest")
    @classmethod
    def validate_default_digest(cls, v: str) -> str:
        v = v.lower().replace("-", "")
        if v not in SUPPORTED_DIGESTS:
            msg = f"default_digest must be one of {SUPPORTED_DIGESTS}"
            raise ValueError(msg)
        return v

    @field_validator("digest_overrides")
    @classmethod
    def validate_digest_overrides(cls, v: dict[str, str]) -> dict[str, str]:
        normalized = {}
        for algorithm, digest in v.items():
            digest_name = digest.lower().replace("-", "")
            if digest_name not in SUPPORTED_DIGESTS:
                msg = f"Unsupported digest '{digest}' for algorithm '{algorithm}'"
                raise ValueError(msg)
            normalized[algorithm] = digest_name
        return normalized

    @field_validator("rsa_default_exponent")
    @classmethod
    def validate_exponent(cls, v: int) -> int:
        if v < 3 or v % 2 == 0:
            msg = "rsa_default_exponent must be an odd integer >= 3"
            raise ValueError(msg)
        return v


def get_environment() -> str:
    """
    Get the current environment from the PASSIVE_AUTH_ENV environment variable.
    Defaults to 'development' if not set.
    """
    return os.environ.get(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT).lower()


def get_config_path(environment: str | None = None) -> Path:
    """Path of the configuration file for ``environment``."""
    if environment is None:
        environment = get_environment()

    # Project root directory is two levels up from the package directory
    project_root = Path(__file__).resolve().parent.parent.parent
    return project_root / "config" / f"{environment}.yaml"


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively expand environment variables in configuration strings.

    Args:
        config: Configuration dictionary

    Returns:
        Configuration with environment variables expanded
    """
    result: dict[str, Any] = {}

    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _expand_env_vars(value)
        elif isinstance(value, str) and "${" in value and "}" in value:
            var_pattern = value.split("${")[1].split("}")[0]

            if ":-" in var_pattern:
                env_var, default = var_pattern.split(":-", 1)
                env_value = os.environ.get(env_var)
                replacement = env_value if env_value is not None else default
                result[key] = value.replace(f"${{{var_pattern}}}", replacement)
            else:
                env_value = os.environ.get(var_pattern)
                if env_value is not None:
                    result[key] = value.replace(f"${{{var_pattern}}}", env_value)
                else:
                    # Keep the original if environment variable is not set
                    result[key] = value
        else:
            result[key] = value

    return result


def load_config(
    environment: str | None = None, config_path: str | Path | None = None
) -> PassiveAuthConfig:
    """
    Load configuration from the YAML file for the environment.

    A missing file yields the built-in defaults. A file that cannot be parsed
    or that fails validation raises ``ConfigurationError``.

    Args:
        environment: The environment to use. If None, uses get_environment()
        config_path: Explicit file path, overriding the environment lookup

    Returns:
        Validated configuration
    """
    path = Path(config_path) if config_path is not None else get_config_path(environment)

    if not path.exists():
        if config_path is not None:
            msg = f"Configuration file not found: {path}"
            raise ConfigurationError(msg)
        return PassiveAuthConfig()

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        msg = f"Error loading configuration: {e!s}"
        raise ConfigurationError(msg) from e

    if not isinstance(raw, dict):
        msg = f"Configuration root must be a mapping: {path}"
        raise ConfigurationError(msg)

    section = raw.get("passive_auth", raw)
    try:
        return PassiveAuthConfig.model_validate(_expand_env_vars(section))
    except ValidationError as e:
        msg = f"Invalid configuration in {path}: {e}"
        raise ConfigurationError(msg) from e
