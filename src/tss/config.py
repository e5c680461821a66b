"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from tss.engine.resolver import DEFAULT_EXTENSIONS

CONFIG_FILE_NAME = "tss.toml"
EOL_SEPARATORS = {"lf": "\n", "crlf": "\r\n"}


@dataclass(slots=True, frozen=True)
class ResolverConfig:
    """Module lookup settings for the directive resolver."""

    extensions: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class AuditConfig:
    """Audit log toggle."""

    enabled: bool


@dataclass(slots=True, frozen=True)
class SessionConfig:
    """Fully merged session configuration."""

    working_dir: Path
    data_dir: Path
    default_lib: Path | None
    eol: str
    resolver: ResolverConfig
    audit: AuditConfig

    @property
    def eol_separator(self) -> str:
        """Return the separator used to join collected payload lines."""
        return EOL_SEPARATORS[self.eol]

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable config snapshot."""
        return {
            "working_dir": str(self.working_dir),
            "data_dir": str(self.data_dir),
            "default_lib": str(self.default_lib) if self.default_lib is not None else None,
            "eol": self.eol,
            "resolver": {"extensions": list(self.resolver.extensions)},
            "audit": {"enabled": self.audit.enabled},
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    default_lib: Path | None = None
    eol: str | None = None
    audit_enabled: bool | None = None


def default_config(working_dir: Path) -> SessionConfig:
    """Build default config for a given working directory."""
    resolved_dir = working_dir.resolve()
    return SessionConfig(
        working_dir=resolved_dir,
        data_dir=resolved_dir / ".tss",
        default_lib=None,
        eol="lf",
        resolver=ResolverConfig(extensions=DEFAULT_EXTENSIONS),
        audit=AuditConfig(enabled=True),
    )


def load_config_file(working_dir: Path) -> dict[str, object]:
    """Load optional tss.toml from the working directory."""
    config_path = working_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _validate_eol(value: object, name: str) -> str:
    if not isinstance(value, str) or value not in EOL_SEPARATORS:
        choices = ", ".join(sorted(EOL_SEPARATORS))
        raise ValueError(f"Config field '{name}' must be one of: {choices}.")
    return value


def merge_config(
    base: SessionConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> SessionConfig:
    """Merge defaults, tss.toml, then CLI/startup overrides."""
    session_payload = _get_table(file_payload, "session")
    resolver_payload = _get_table(file_payload, "resolver")
    audit_payload = _get_table(file_payload, "audit")

    default_lib = base.default_lib
    if "default_lib" in session_payload:
        raw_default_lib = session_payload["default_lib"]
        if not isinstance(raw_default_lib, str) or not raw_default_lib:
            raise ValueError("Config field 'session.default_lib' must be a non-empty string.")
        default_lib = base.working_dir / raw_default_lib

    eol = base.eol
    if "eol" in session_payload:
        eol = _validate_eol(session_payload["eol"], "session.eol")

    extensions = base.resolver.extensions
    if "extensions" in resolver_payload:
        extensions = _tuple_of_strings(resolver_payload["extensions"], "resolver", "extensions")
        if not extensions or any(not item.startswith(".") for item in extensions):
            raise ValueError(
                "Config field 'resolver.extensions' must list extensions starting with '.'."
            )

    audit_enabled = base.audit.enabled
    if "enabled" in audit_payload:
        raw_enabled = audit_payload["enabled"]
        if not isinstance(raw_enabled, bool):
            raise ValueError("Config field 'audit.enabled' must be a boolean.")
        audit_enabled = raw_enabled

    merged = SessionConfig(
        working_dir=base.working_dir,
        data_dir=base.data_dir,
        default_lib=default_lib,
        eol=eol,
        resolver=ResolverConfig(extensions=extensions),
        audit=AuditConfig(enabled=audit_enabled),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: SessionConfig, overrides: CliOverrides) -> SessionConfig:
    """Apply startup overrides at highest precedence."""
    eol = config.eol
    if overrides.eol is not None:
        eol = _validate_eol(overrides.eol, "overrides.eol")
    default_lib = config.default_lib
    if overrides.default_lib is not None:
        default_lib = config.working_dir / overrides.default_lib
    audit = AuditConfig(
        enabled=(
            overrides.audit_enabled
            if overrides.audit_enabled is not None
            else config.audit.enabled
        )
    )
    data_dir = overrides.data_dir or config.data_dir
    return SessionConfig(
        working_dir=config.working_dir,
        data_dir=data_dir.resolve(),
        default_lib=default_lib,
        eol=eol,
        resolver=config.resolver,
        audit=audit,
    )


def load_effective_config(
    working_dir: Path, overrides: CliOverrides | None = None
) -> SessionConfig:
    """Load effective config using merge order defaults -> tss.toml -> overrides."""
    resolved_dir = working_dir.resolve()
    base = default_config(resolved_dir)
    payload = load_config_file(resolved_dir)
    return merge_config(base, payload, overrides or CliOverrides())
