"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from context_coder.digest.models import TokenLimits
from context_coder.digest.paginator import DEFAULT_PAGE_SIZE

CONFIG_FILE_NAME = "context_coder.toml"
TOOL_MODES = ("mini", "full")
MAX_PAGE_SIZE_CAP = 10_000_000

CLAUDE_TOKEN_LIMIT_ENV = "COCO_CLAUDE_TOKEN_LIMIT"
GPT_TOKEN_LIMIT_ENV = "COCO_GPT_TOKEN_LIMIT"
MODE_ENV = "CONTEXT_CODER_MODE"
DEV_ENV = "COCO_DEV"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    root_dir: Path
    data_dir: Path
    mode: str
    page_size: int
    token_limits: TokenLimits
    audit_enabled: bool = True

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        return {
            "root_dir": str(self.root_dir),
            "data_dir": str(self.data_dir),
            "mode": self.mode,
            "page_size": self.page_size,
            "token_limits": {
                "claude": self.token_limits.claude,
                "gpt": self.token_limits.gpt,
            },
            "audit_enabled": self.audit_enabled,
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    mode: str | None = None
    page_size: int | None = None
    claude_token_limit: int | None = None
    gpt_token_limit: int | None = None
    audit_enabled: bool | None = None


def default_root_dir(environ: Mapping[str, str]) -> Path:
    """Root is ./mount in development mode, else the working directory."""
    if environ.get(DEV_ENV, "").strip().lower() == "true":
        return Path("./mount")
    return Path(".")


def default_config(root_dir: Path) -> ServerConfig:
    """Build default config for a given root directory."""
    resolved_root = root_dir.resolve()
    return ServerConfig(
        root_dir=resolved_root,
        data_dir=resolved_root / ".context_coder",
        mode="full",
        page_size=DEFAULT_PAGE_SIZE,
        token_limits=TokenLimits(),
    )


def load_config_file(root_dir: Path) -> dict[str, object]:
    """Load optional context_coder.toml from the root directory."""
    config_path = root_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        return tomllib.load(handle)


def _get_table(payload: Mapping[str, object], key: str) -> Mapping[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _optional_positive_int(value: object, name: str, default: int, cap: int | None = None) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def _optional_mode(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if value not in TOOL_MODES:
        raise ValueError(f"Config field '{name}' must be one of: {', '.join(TOOL_MODES)}.")
    return str(value)


def _lenient_int(raw: str | None, default: int) -> int:
    """Parse the leading integer of an environment value.

    Trailing text is ignored ("150000abc" reads as 150000). A value with no
    leading digits, or one below 1, keeps the default.
    """
    if raw is None:
        return default
    match = _LEADING_INT.match(raw)
    if match is None:
        return default
    value = int(match.group(1))
    return value if value > 0 else default


def merge_config(base: ServerConfig, file_payload: Mapping[str, object]) -> ServerConfig:
    """Merge the optional config file over defaults."""
    limits_payload = _get_table(file_payload, "limits")
    server_payload = _get_table(file_payload, "server")
    return replace(
        base,
        mode=_optional_mode(server_payload.get("mode"), "server.mode", base.mode),
        page_size=_optional_positive_int(
            limits_payload.get("page_size"), "limits.page_size", base.page_size, MAX_PAGE_SIZE_CAP
        ),
        token_limits=TokenLimits(
            claude=_optional_positive_int(
                limits_payload.get("claude_token_limit"),
                "limits.claude_token_limit",
                base.token_limits.claude,
            ),
            gpt=_optional_positive_int(
                limits_payload.get("gpt_token_limit"),
                "limits.gpt_token_limit",
                base.token_limits.gpt,
            ),
        ),
    )


def apply_environment(config: ServerConfig, environ: Mapping[str, str]) -> ServerConfig:
    """Apply environment overrides; invalid token limits fall back silently."""
    mode_value = environ.get(MODE_ENV, "").strip().lower()
    return replace(
        config,
        mode=mode_value if mode_value in TOOL_MODES else config.mode,
        token_limits=TokenLimits(
            claude=_lenient_int(environ.get(CLAUDE_TOKEN_LIMIT_ENV), config.token_limits.claude),
            gpt=_lenient_int(environ.get(GPT_TOKEN_LIMIT_ENV), config.token_limits.gpt),
        ),
    )


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    data_dir = overrides.data_dir or config.data_dir
    return replace(
        config,
        data_dir=data_dir.resolve(),
        mode=_optional_mode(overrides.mode, "overrides.mode", config.mode),
        page_size=_optional_positive_int(
            overrides.page_size, "overrides.page_size", config.page_size, MAX_PAGE_SIZE_CAP
        ),
        token_limits=TokenLimits(
            claude=_optional_positive_int(
                overrides.claude_token_limit,
                "overrides.claude_token_limit",
                config.token_limits.claude,
            ),
            gpt=_optional_positive_int(
                overrides.gpt_token_limit,
                "overrides.gpt_token_limit",
                config.token_limits.gpt,
            ),
        ),
        audit_enabled=(
            overrides.audit_enabled
            if overrides.audit_enabled is not None
            else config.audit_enabled
        ),
    )


def load_effective_config(
    root_dir: Path,
    overrides: CliOverrides | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """Load config using merge order defaults -> config file -> environment -> overrides."""
    resolved_root = root_dir.resolve()
    base = default_config(resolved_root)
    merged = merge_config(base, load_config_file(resolved_root))
    with_env = apply_environment(merged, os.environ if environ is None else environ)
    return apply_cli_overrides(with_env, overrides or CliOverrides())
