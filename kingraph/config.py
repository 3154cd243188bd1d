"""Load engine settings from TOML (e.g. kingraph.toml).

Config file is looked up in order:
  1. Path in KINGRAPH_CONFIG env var (if set)
  2. kingraph.toml in the kingraph package directory
  3. kingraph.toml in the current working directory

Only the [engine] table is read. If no file is found, built-in defaults are
used (max_inference_depth=8, allow_self_edges=false, log_level="INFO").

Example kingraph.toml:

    [engine]
    max_inference_depth = 4
    allow_self_edges = false
    log_level = "DEBUG"
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CONFIG_ENV_VAR = "KINGRAPH_CONFIG"
CONFIG_FILENAME = "kingraph.toml"

DEFAULT_MAX_INFERENCE_DEPTH = 8


class EngineConfig(BaseModel):
    """Settings for `RelationshipInferenceEngine`.

    Attributes:
        max_inference_depth: Cap on recursive inference within one
            add_relationship call. The direct edge is depth 0; parent edges
            added by sibling closure are depth 1 and run parent propagation
            only when the cap is above 1. Parent propagation never recurses,
            so any value of 2 or more behaves the same with the built-in
            rules and acts as a guard against runaway recursion.
        allow_self_edges: Accept relationships whose source and target are
            the same resident. Rejected by default.
        log_level: Level name for the "kingraph" logger.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    max_inference_depth: int = Field(default=DEFAULT_MAX_INFERENCE_DEPTH, ge=1)
    allow_self_edges: bool = False
    log_level: str = "INFO"


def _default_config_paths() -> list[Path]:
    """Return paths to check for kingraph.toml (first existing wins)."""
    paths: list[Path] = []
    if os.environ.get(CONFIG_ENV_VAR):
        paths.append(Path(os.environ[CONFIG_ENV_VAR]))
    paths.append(Path(__file__).resolve().parent / CONFIG_FILENAME)
    paths.append(Path.cwd() / CONFIG_FILENAME)
    return paths


def load_engine_config(path: str | Path | None = None) -> EngineConfig:
    """Load engine settings from the first readable TOML file.

    Args:
        path: Explicit file to read instead of the default search paths.

    Returns:
        EngineConfig built from the [engine] table, or defaults when no file
        (or no [engine] table) is found.

    Raises:
        pydantic.ValidationError: if the [engine] table holds invalid values.
    """
    candidates = [Path(path)] if path is not None else _default_config_paths()
    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            with open(candidate, "rb") as f:
                data: dict[str, Any] = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            continue
        engine = data.get("engine")
        if isinstance(engine, dict):
            return EngineConfig.model_validate(engine)
        break
    return EngineConfig()
