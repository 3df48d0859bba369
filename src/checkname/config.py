"""
checkname configuration

All magic numbers, API keys, model choices, and behavior settings live here.
Environment variables override defaults for deployment flexibility.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class ProbeConfig:
    """How we talk to registries and hosting platforms"""
    timeout_seconds: float = float(os.getenv("PROBE_TIMEOUT", "10.0"))
    user_agent: str = os.getenv(
        "USER_AGENT", "checkname-cli (project name availability checker)"
    )
    github_token: str = os.getenv("GITHUB_TOKEN", "")
    github_cooldown_seconds: float = float(os.getenv("GITHUB_COOLDOWN", "3600"))
    variant_wave_size: int = int(os.getenv("VARIANT_WAVE_SIZE", "3"))
    variant_wave_pause: float = float(os.getenv("VARIANT_WAVE_PAUSE", "0.5"))


@dataclass
class FindConfig:
    """Discovery loop defaults"""
    target_count: int = int(os.getenv("TARGET_COUNT", "5"))
    batch_size: int = int(os.getenv("BATCH_SIZE", "10"))
    threshold: float = float(os.getenv("AVAILABILITY_THRESHOLD", "0.7"))
    min_score: float = float(os.getenv("MIN_SCORE", "3.5"))
    accepted_verdicts: list[str] = field(
        default_factory=lambda: _csv(os.getenv("ACCEPTED_VERDICTS", "strong,consider"))
    )
    max_iterations: int = int(os.getenv("MAX_ITERATIONS", "10"))
    default_profile: str = os.getenv("DEFAULT_PROFILE", "default")


@dataclass
class ModelConfig:
    """AI model selection"""
    provider: Literal["openrouter", "claude", "mock"] = os.getenv("NAME_PROVIDER", "openrouter")
    generate_model: str = os.getenv("GENERATE_MODEL", "claude-sonnet")
    judge_model: str = os.getenv("JUDGE_MODEL", "gemini-pro")

    generate_temperature: float = float(os.getenv("GENERATE_TEMPERATURE", "0.9"))
    refine_temperature: float = float(os.getenv("REFINE_TEMPERATURE", "0.8"))
    judge_temperature: float = float(os.getenv("JUDGE_TEMPERATURE", "0.3"))

    # Short aliases -> OpenRouter model ids
    MODEL_ALIASES = {
        "claude-sonnet": "anthropic/claude-sonnet-4",
        "claude-haiku": "anthropic/claude-3.5-haiku",
        "gpt-4o": "openai/gpt-4o",
        "gpt-4o-mini": "openai/gpt-4o-mini",
        "gemini-pro": "google/gemini-2.5-pro",
        "gemini-flash": "google/gemini-2.5-flash",
        "deepseek": "deepseek/deepseek-chat",
        "llama": "meta-llama/llama-3.3-70b-instruct",
    }

    def resolve_model(self, alias: str) -> str:
        """Map an alias to a full model id; unknown values pass through."""
        return self.MODEL_ALIASES.get(alias, alias)


@dataclass
class StoreConfig:
    """Where project history is kept"""
    db_path: Path = Path(
        os.getenv("CHECKNAME_DB", str(Path.home() / ".config" / "checkname" / "names.duckdb"))
    )


@dataclass
class Config:
    """Master config, import this"""
    probes: ProbeConfig = field(default_factory=ProbeConfig)
    find: FindConfig = field(default_factory=FindConfig)
    models: ModelConfig = field(default_factory=ModelConfig)
    store: StoreConfig = field(default_factory=StoreConfig)

    @classmethod
    def fast_mode(cls) -> "Config":
        """For development and testing: short timeouts, no pauses between waves"""
        cfg = cls()
        cfg.probes.timeout_seconds = 3.0
        cfg.probes.variant_wave_pause = 0.0
        return cfg

    @classmethod
    def cheap_mode(cls) -> "Config":
        """Minimize AI costs: smaller batches, cheaper models"""
        cfg = cls()
        cfg.find.batch_size = 5
        cfg.models.generate_model = "claude-haiku"
        cfg.models.judge_model = "gemini-flash"
        return cfg


# Singleton
config = Config()
