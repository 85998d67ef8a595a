from pydantic_settings import BaseSettings
from pydantic import BaseModel, Field, model_validator
from typing import Any
import os
import re
import yaml

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

DEFAULT_PURGE_FILES_AFTER = 3600 * 24 * 30


def _resolve_env_vars(value: Any) -> Any:
    if isinstance(value, str):
        return _ENV_PATTERN.sub(
            lambda m: os.environ.get(m.group(1), m.group(0)), value
        )
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(v) for v in value]
    return value


class RepoConfig(BaseModel):
    url: str = ""
    urls: list[str] = []

    # Legacy compat: single `url` folds into `urls`
    @model_validator(mode="after")
    def _merge_url(self) -> "RepoConfig":
        if self.url and self.url not in self.urls:
            self.urls = [self.url, *self.urls]
        return self


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 9129
    log_level: str = "info"


class Settings(BaseSettings):
    model_config = {"extra": "allow", "env_prefix": "PKGCACHE_"}

    cache_dir: str = "/var/cache/pkgcache"
    # Zero is not rejected here; the purge scheduler refuses to start with it.
    purge_files_after: int = DEFAULT_PURGE_FILES_AFTER
    keep_files: int = Field(default=0, ge=0)
    purge_interval_hours: int = Field(default=24, gt=0)
    repos: dict[str, RepoConfig] = {}
    server: ServerConfig = ServerConfig()

    @model_validator(mode="before")
    @classmethod
    def _allow_empty_repos(cls, data: Any) -> Any:
        # `repos:` with no body parses as None in YAML
        if isinstance(data, dict) and data.get("repos") is None:
            data = {**data, "repos": {}}
        return data

    @classmethod
    def from_yaml(cls, path: str = "pkgcache.yaml") -> "Settings":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        data = _resolve_env_vars(data)
        return cls(**data)

    @property
    def repo_names(self) -> list[str]:
        return list(self.repos)
