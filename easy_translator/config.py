"""
Configuration.

Precedence, lowest first: dataclass defaults, environment variables, config
file (YAML or JSON), command line flags.
"""
from __future__ import annotations

import argparse
import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError


@dataclass
class LLMConfig:
    model: str = "gpt-4-turbo"
    temperature: Optional[float] = 0.3
    # Reasoning models take an effort level instead of a temperature
    reasoning_effort: Optional[str] = None
    max_tokens: Optional[int] = None  # None lets OpenAI decide
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    request_timeout: int = 120
    base_url: Optional[str] = None
    # Replaces the built-in language-pair instruction
    prompt: Optional[str] = None


@dataclass
class SplitConfig:
    chunk_size: int = 4000  # characters


@dataclass
class RuntimeConfig:
    input: str = ""
    output: Optional[str] = None
    source_lang: str = "auto"
    target_lang: str = "English"
    db_path: Optional[str] = None
    clear: bool = False
    retry_failed: bool = True
    max_concurrent: int = 5
    batch_delay: float = 1.0
    rate_limit_wait: float = 20.0
    max_attempts: int = 2
    dry_run: bool = False


# env var -> (section, key, converter)
ENV_OVERRIDES: Dict[str, tuple] = {
    "OPENAI_MODEL": ("llm", "model", str),
    "TEMPERATURE": ("llm", "temperature", float),
    "CHUNK_SIZE": ("split", "chunk_size", int),
    "MAX_CONCURRENT": ("runtime", "max_concurrent", int),
}

# CLI dest -> (section, key)
ARG_OVERRIDES: Dict[str, tuple] = {
    "input": ("runtime", "input"),
    "output": ("runtime", "output"),
    "source_lang": ("runtime", "source_lang"),
    "target_lang": ("runtime", "target_lang"),
    "db_path": ("runtime", "db_path"),
    "max_concurrent": ("runtime", "max_concurrent"),
    "batch_delay": ("runtime", "batch_delay"),
    "rate_limit_wait": ("runtime", "rate_limit_wait"),
    "model": ("llm", "model"),
    "temperature": ("llm", "temperature"),
    "reasoning_effort": ("llm", "reasoning_effort"),
    "max_tokens": ("llm", "max_tokens"),
    "top_p": ("llm", "top_p"),
    "frequency_penalty": ("llm", "frequency_penalty"),
    "presence_penalty": ("llm", "presence_penalty"),
    "request_timeout": ("llm", "request_timeout"),
    "base_url": ("llm", "base_url"),
    "prompt": ("llm", "prompt"),
    "chunk_size": ("split", "chunk_size"),
}


@dataclass
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    split: SplitConfig = field(default_factory=SplitConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    @staticmethod
    def from_files_and_args(
        config_path: Optional[str],
        args: argparse.Namespace,
        environ: Optional[Dict[str, str]] = None,
    ) -> "AppConfig":
        cfg = apply_env_overrides(AppConfig(), os.environ if environ is None else environ)
        if config_path:
            cfg = merge_config(cfg, load_config_file(Path(config_path)))

        # CLI args: only values the user actually passed
        for dest, (section, key) in ARG_OVERRIDES.items():
            value = getattr(args, dest, None)
            if value is not None:
                setattr(getattr(cfg, section), key, value)
        if getattr(args, "clear", False):
            cfg.runtime.clear = True
        if getattr(args, "no_retry_failed", False):
            cfg.runtime.retry_failed = False
        if getattr(args, "dry_run", False):
            cfg.runtime.dry_run = True
        validate_config(cfg)
        return cfg


def validate_config(cfg: AppConfig) -> None:
    checks = (
        ("split.chunk_size", cfg.split.chunk_size),
        ("runtime.max_concurrent", cfg.runtime.max_concurrent),
        ("runtime.max_attempts", cfg.runtime.max_attempts),
    )
    for name, value in checks:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    if cfg.runtime.batch_delay < 0 or cfg.runtime.rate_limit_wait < 0:
        raise ConfigError("runtime.batch_delay and runtime.rate_limit_wait must not be negative")


def load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise ConfigError("Unsupported config format. Use .yaml/.yml or .json")
    try:
        with path.open("r", encoding="utf-8") as f:
            if suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def deep_update_dict(d: Dict[str, Any], u: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict) and isinstance(d.get(k), dict):
            d[k] = deep_update_dict(d[k], v)
        else:
            d[k] = v
    return d


def merge_config(base: AppConfig, override: Dict[str, Any]) -> AppConfig:
    # Convert dataclass to nested dict, update, then back
    d = asdict(base)
    deep_update_dict(d, override)
    try:
        return AppConfig(
            llm=LLMConfig(**d.get("llm", {})),
            split=SplitConfig(**d.get("split", {})),
            runtime=RuntimeConfig(**d.get("runtime", {})),
        )
    except TypeError as e:
        raise ConfigError(f"Unknown configuration key: {e}") from e


def apply_env_overrides(cfg: AppConfig, environ: Dict[str, str]) -> AppConfig:
    for name, (section, key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(name)
        if raw is None or raw == "":
            continue
        try:
            value = convert(raw)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {name}: {raw!r}") from e
        setattr(getattr(cfg, section), key, value)
    return cfg
