"""
Configuration for the placement command-line front end.

Defines Settings, a frozen dataclass carrying runtime configuration for the
CLI. The library functions (parse, validate, to_json, from_json) take no
configuration; only presentation and the opt-in strict JSON check live here.

Precedence
- environment (PLACEMENT_*) > TOML (placement.toml or [tool.placement]) > defaults.

Import DAG discipline
- Depends only on stdlib.
- Invalid values in env or TOML are ignored and the previous value is kept.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

__all__ = ["Settings"]

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for the placement CLI.

    Attributes:
        indent (int | None): JSON output indentation; None prints compact JSON.
        strict_json (bool): If True, decoded JSON policies are also run through
            the semantic validator (the library decoder never does this itself).
        log_level (str): Logging level name for the CLI console handler.

    Examples:
        >>> from placement.config import Settings
        >>> Settings(indent=2).strict_json
        False
    """

    indent: int | None = None
    strict_json: bool = False
    log_level: str = "WARNING"

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: Settings, cfg: dict[str, Any] | None) -> Settings:
        """Apply a loose config mapping onto Settings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        def _bool(v: Any) -> bool:
            if isinstance(v, bool):
                return v
            if isinstance(v, (int, float)):
                return bool(v)
            if isinstance(v, str):
                return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
            return False

        # indent: non-negative int, or "none"/"" for compact output
        if "indent" in cfg:
            v = cfg["indent"]
            if v is None or (isinstance(v, str) and v.strip().lower() in {"", "none"}):
                s = replace(s, indent=None)
            else:
                try:
                    n = int(v)
                except (TypeError, ValueError):
                    n = -1
                if n >= 0:
                    s = replace(s, indent=n)

        if "strict_json" in cfg:
            s = replace(s, strict_json=_bool(cfg["strict_json"]))

        if "log_level" in cfg and isinstance(cfg["log_level"], str):
            level = cfg["log_level"].strip().upper()
            if level in _LOG_LEVELS:
                s = replace(s, log_level=level)

        return s

    @classmethod
    def from_env(cls, base: Settings | None = None, prefix: str = "PLACEMENT_") -> Settings:
        """
        Build Settings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - PLACEMENT_INDENT (integer, or "none")
            - PLACEMENT_STRICT_JSON (1/0/true/false/yes/no/on/off)
            - PLACEMENT_LOG_LEVEL (DEBUG | INFO | WARNING | ERROR | CRITICAL)
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for name in ("INDENT", "STRICT_JSON", "LOG_LEVEL"):
            v = os.getenv(prefix + name)
            if v:
                mapping[name.lower()] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> Settings:
        """
        Build Settings from a TOML file.

        Search order when `path` is None:
            1) ./placement.toml (with either a top-level [placement] table or direct keys)
            2) ./pyproject.toml under [tool.placement]

        Returns defaults if no file is present or none of them parses.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "placement.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("placement") if isinstance(tool, dict) else None
            elif isinstance(data.get("placement"), dict):
                cfg = data["placement"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> Settings:
        """
        Load Settings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (placement.toml, pyproject.toml).

        Returns:
            Settings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
