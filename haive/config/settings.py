"""
Configuration settings for haive.

This module contains the constants used throughout haive, including the
ranked list of configuration file candidates searched by the loader.
"""

from dataclasses import dataclass
from typing import Optional

# Version information
VERSION = "0.4.0"
AUTHOR = "haive contributors"

# Key used to wrap haive's section inside a shared JSON document
NAMESPACE_KEY = "haive"


@dataclass(frozen=True)
class ConfigCandidate:
    """A config file location tried at every directory level."""

    relative_path: str
    format: str
    namespace: Optional[str] = None


# Highest priority first. Adding a format or location means adding an entry.
CONFIG_CANDIDATES = (
    ConfigCandidate(".haive.toml", "toml"),
    ConfigCandidate("haive.toml", "toml"),
    ConfigCandidate(".haive/config.toml", "toml"),
    ConfigCandidate("haive.yaml", "yaml"),
    ConfigCandidate(".haive/config.yaml", "yaml"),
    ConfigCandidate("haive.json", "json", NAMESPACE_KEY),
    ConfigCandidate(".haive/config.json", "json", NAMESPACE_KEY),
    ConfigCandidate(".haive.json", "json", NAMESPACE_KEY),
    ConfigCandidate(".claude/project.json", "json", NAMESPACE_KEY),
)

# Defaults filled in by the loader
DEFAULT_DUMPS_PATH = "var/dumps"
DEFAULT_ENV_FILE = ".env.local"
DEFAULT_ENV_VAR_NAME = "DATABASE_URL"
DEFAULT_COMPOSE_PROJECT = "app"

# Env files consulted when resolving ${VAR} placeholders, first match wins
ENV_FILES = (".env.local", ".env")

# Branches that map to the configured default database
DEFAULT_BRANCHES = {"main", "master"}

# Branch name validation pattern, matched against the whole name
BRANCH_NAME_PATTERN = r"[a-zA-Z0-9_\-/]+"

# Database names end up inside backtick-quoted SQL identifiers
DATABASE_NAME_PATTERN = r"[a-zA-Z0-9_\-]+"

# Engine-internal schemas hidden from database listings
SYSTEM_DATABASES = {"information_schema", "mysql", "performance_schema", "sys"}

# Default ports per engine family
DEFAULT_PORTS = {
    "mysql": 3306,
    "mariadb": 3306,
    "postgresql": 5432,
}

# Container runtime invocation
COMPOSE_COMMAND = ["docker", "compose"]

# Compose files looked up by `info` and `init`
COMPOSE_FILE_NAMES = (
    "compose.yml",
    "compose.yaml",
    "docker-compose.yml",
    "docker-compose.yaml",
)

# Local git config key recording the database used by a checkout
GIT_CONFIG_DATABASE_KEY = "haive.database"

# Dump file timestamp format, e.g. app_2025-02-11T10-30.sql
DUMP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M"

# Local hostname suffix used by `serve`
SERVE_HOST_SUFFIX = "app.orb.local"

# Header written above entries haive adds to .gitignore
GITIGNORE_HEADER = "# Worktrees directory"
