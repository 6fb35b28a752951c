"""Unified YAML Configuration for prompt-router.

Consolidates the tunable constants of the routing core:
- scoring: weights, sensitivity tiers and complexity penalty
- analysis: AI-assisted prompt analysis client settings
- metrics: performance tracker storage and cost baseline
- server: optional HTTP surface settings
- engines: engines registered with the router at startup

Configuration Priority: Environment Variables > YAML > Defaults

Example YAML configuration (prompt_router.yaml):

    router:
      scoring:
        weights:
          historical: 0.30
          task_match: 0.25
          complexity_fit: 0.20
          cost: 0.15
          speed: 0.10
        cost_tiers:
          high: {good: 0.001, acceptable: 0.01}
      analysis:
        enabled: true
        model: gpt-4o-mini
      metrics:
        directory: ${HOME}/.prompt-router/metrics
      engines:
        - name: gpt-4o-mini
        - name: tinyllama
          base_url: http://localhost:11434
          capabilities: {accuracy: 7}
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

load_dotenv()

_TRUTHY_VALUES = ("true", "1", "yes", "on")

SENSITIVITY_LEVELS = ("low", "medium", "high")


# =============================================================================
# Scoring Configuration
# =============================================================================


class ScoringWeights(BaseModel):
    """Weights for the five scoring components. Must sum to 1.0."""

    historical: float = Field(default=0.30, ge=0.0, le=1.0)
    task_match: float = Field(default=0.25, ge=0.0, le=1.0)
    complexity_fit: float = Field(default=0.20, ge=0.0, le=1.0)
    cost: float = Field(default=0.15, ge=0.0, le=1.0)
    speed: float = Field(default=0.10, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_sum(self) -> "ScoringWeights":
        total = (
            self.historical + self.task_match + self.complexity_fit + self.cost + self.speed
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"scoring weights must sum to 1.0, got {total:.4f}")
        return self


class TierThreshold(BaseModel):
    """A "good" and "acceptable" ceiling for one sensitivity level."""

    good: float = Field(ge=0.0)
    acceptable: float = Field(ge=0.0)

    @model_validator(mode="after")
    def check_order(self) -> "TierThreshold":
        if self.acceptable < self.good:
            raise ValueError("acceptable threshold must be >= good threshold")
        return self


def _default_cost_tiers() -> Dict[str, TierThreshold]:
    return {
        "low": TierThreshold(good=0.01, acceptable=0.05),
        "medium": TierThreshold(good=0.005, acceptable=0.02),
        "high": TierThreshold(good=0.001, acceptable=0.01),
    }


def _default_speed_tiers() -> Dict[str, TierThreshold]:
    return {
        "low": TierThreshold(good=30000, acceptable=60000),
        "medium": TierThreshold(good=15000, acceptable=30000),
        "high": TierThreshold(good=5000, acceptable=15000),
    }


class ScoringConfig(BaseModel):
    """Configuration for the model scorer."""

    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    cost_tiers: Dict[str, TierThreshold] = Field(default_factory=_default_cost_tiers)
    speed_tiers: Dict[str, TierThreshold] = Field(default_factory=_default_speed_tiers)
    # Score decays by this much per USD above the acceptable cost ceiling
    cost_decay_per_usd: float = Field(default=20.0, gt=0.0)
    # Score decays by 1.0 per this many ms above the acceptable time ceiling
    speed_decay_ms: float = Field(default=10000.0, gt=0.0)
    tier_acceptable_score: float = Field(default=0.7, ge=0.0, le=1.0)
    tier_floor_score: float = Field(default=0.2, ge=0.0, le=1.0)
    complexity_penalty_per_level: float = Field(default=0.15, ge=0.0, le=1.0)
    complexity_floor: float = Field(default=0.3, ge=0.0, le=1.0)
    default_historical_score: float = Field(default=7.0, ge=0.0, le=10.0)
    history_window_days: int = Field(default=30, ge=1, le=3650)
    prompt_token_share: float = Field(default=0.3, gt=0.0, lt=1.0)
    local_first_max_complexity: int = Field(default=6, ge=1, le=10)

    @model_validator(mode="after")
    def ensure_all_tiers(self) -> "ScoringConfig":
        """Fill in any sensitivity tier missing from a partial override."""
        for level, tier in _default_cost_tiers().items():
            self.cost_tiers.setdefault(level, tier)
        for level, tier in _default_speed_tiers().items():
            self.speed_tiers.setdefault(level, tier)
        unknown = (set(self.cost_tiers) | set(self.speed_tiers)) - set(SENSITIVITY_LEVELS)
        if unknown:
            raise ValueError(f"unknown sensitivity tiers: {sorted(unknown)}")
        return self


# =============================================================================
# Analysis Configuration
# =============================================================================


class AnalyzerConfig(BaseModel):
    """Configuration for AI-assisted prompt analysis."""

    enabled: bool = True
    model: str = Field(default="gpt-4o-mini")
    base_url: str = Field(default="https://api.openai.com/v1")
    api_key: Optional[str] = None
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=600.0)
    max_tokens: int = Field(default=500, ge=16, le=8192)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)


# =============================================================================
# Metrics Configuration
# =============================================================================


def _default_metrics_dir() -> Path:
    return Path.cwd() / ".prompt-router" / "metrics"


class MetricsConfig(BaseModel):
    """Configuration for the performance tracker."""

    directory: Path = Field(default_factory=_default_metrics_dir)
    # Cost per run of a GPT-4-class model, used as the savings baseline
    baseline_cost_per_run: float = Field(default=0.008, ge=0.0)
    stable_trend_threshold_pct: float = Field(default=5.0, ge=0.0)
    top_models: int = Field(default=5, ge=1, le=100)

    @field_validator("directory", mode="before")
    @classmethod
    def expand_directory(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class ServerConfig(BaseModel):
    """Configuration for the optional HTTP surface."""

    api_token: Optional[str] = None
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    default_summary_days: int = Field(default=30, ge=1, le=3650)


# =============================================================================
# Engine Configuration
# =============================================================================


class EngineCapabilitiesConfig(BaseModel):
    """Capability overrides (1-10); unset dimensions keep the engine's defaults."""

    model_config = ConfigDict(extra="forbid")

    code_generation: Optional[int] = Field(default=None, ge=1, le=10)
    creativity: Optional[int] = Field(default=None, ge=1, le=10)
    accuracy: Optional[int] = Field(default=None, ge=1, le=10)
    speed: Optional[int] = Field(default=None, ge=1, le=10)
    cost_efficiency: Optional[int] = Field(default=None, ge=1, le=10)
    complexity_handling: Optional[int] = Field(default=None, ge=1, le=10)


class EnginePricingConfig(BaseModel):
    """Price sheet and latency model for one engine."""

    prompt_per_1k: float = Field(ge=0.0)
    completion_per_1k: float = Field(ge=0.0)
    base_time_ms: float = Field(ge=0.0)
    time_per_token_ms: float = Field(default=2.0, ge=0.0)


class EngineEntry(BaseModel):
    """An engine registered with the router at startup.

    Only the name is required. The model defaults to the name, and known
    engine names bring their own capabilities and pricing.
    """

    name: str = Field(min_length=1)
    model: Optional[str] = None
    base_url: Optional[str] = None
    is_local: Optional[bool] = None
    capabilities: Optional[EngineCapabilitiesConfig] = None
    pricing: Optional[EnginePricingConfig] = None


# =============================================================================
# Main Unified Configuration
# =============================================================================


class RouterConfig(BaseModel):
    """Unified configuration for prompt-router."""

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    analysis: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    engines: List[EngineEntry] = Field(default_factory=list)

    @field_validator("engines")
    @classmethod
    def unique_engine_names(cls, v: List[EngineEntry]) -> List[EngineEntry]:
        names = [entry.name for entry in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate engine names: {duplicates}")
        return v

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        config_dict = {"router": self.to_dict()}
        return yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return self.model_dump(mode="json", exclude_none=True)


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute environment variables in configuration values.

    Supports ${VAR_NAME} syntax.
    """
    if isinstance(value, str):
        pattern = r"\$\{([^}]+)\}"
        for var_name in re.findall(pattern, value):
            value = value.replace(f"${{{var_name}}}", os.getenv(var_name, ""))
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_config(
    config_path: Optional[Path] = None,
    strict: bool = False,
) -> RouterConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file. If None, uses defaults.
        strict: If True, raise ValueError on validation errors. If False,
                fall back to defaults on errors.

    Returns:
        RouterConfig object

    Raises:
        ValueError: If strict=True and configuration is invalid
    """
    if config_path is None or not config_path.exists():
        return RouterConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            return RouterConfig()

        raw_config = _substitute_env_vars(raw_config)
        return RouterConfig(**raw_config.get("router", {}))

    except yaml.YAMLError as e:
        if strict:
            raise ValueError(f"Invalid YAML: {e}")
        return RouterConfig()
    except Exception as e:
        if strict:
            raise ValueError(f"Configuration error: {e}")
        return RouterConfig()


def _find_config_file() -> Optional[Path]:
    """Find configuration file in standard locations.

    Search order:
    1. PROMPT_ROUTER_CONFIG environment variable
    2. ./prompt_router.yaml (current directory)
    3. ~/.config/prompt-router/prompt_router.yaml
    """
    env_path = os.getenv("PROMPT_ROUTER_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    cwd_path = Path.cwd() / "prompt_router.yaml"
    if cwd_path.exists():
        return cwd_path

    home_path = Path.home() / ".config" / "prompt-router" / "prompt_router.yaml"
    if home_path.exists():
        return home_path

    return None


def _apply_env_overrides(config: RouterConfig) -> RouterConfig:
    """Apply environment variable overrides to configuration.

    Environment variables take precedence over YAML configuration.
    """
    config_dict = config.to_dict()

    metrics_dir = os.getenv("PROMPT_ROUTER_METRICS_DIR")
    if metrics_dir:
        config_dict.setdefault("metrics", {})["directory"] = metrics_dir

    ai_analysis = os.getenv("PROMPT_ROUTER_AI_ANALYSIS")
    if ai_analysis:
        config_dict.setdefault("analysis", {})["enabled"] = ai_analysis.lower() in _TRUTHY_VALUES

    analysis_model = os.getenv("PROMPT_ROUTER_ANALYSIS_MODEL")
    if analysis_model:
        config_dict.setdefault("analysis", {})["model"] = analysis_model

    base_url = os.getenv("OPENAI_BASE_URL")
    if base_url:
        config_dict.setdefault("analysis", {})["base_url"] = base_url

    # Credentials always come from env when present
    api_key = os.getenv("OPENAI_API_KEY")
    if api_key:
        config_dict.setdefault("analysis", {})["api_key"] = api_key

    api_token = os.getenv("PROMPT_ROUTER_API_TOKEN")
    if api_token:
        config_dict.setdefault("server", {})["api_token"] = api_token

    return RouterConfig(**config_dict)


def get_effective_config(config_path: Optional[Path] = None) -> RouterConfig:
    """Get the effective configuration with all overrides applied.

    Priority: Environment Variables > YAML > Defaults
    """
    if config_path is None:
        config_path = _find_config_file()

    config = load_config(config_path)
    return _apply_env_overrides(config)


# =============================================================================
# Global Configuration Instance
# =============================================================================

_global_config: Optional[RouterConfig] = None


def get_config() -> RouterConfig:
    """Get the cached process configuration.

    Services accept an explicit RouterConfig; this is only the default
    they fall back to when none is given.
    """
    global _global_config
    if _global_config is None:
        _global_config = get_effective_config()
    return _global_config


def reload_config() -> RouterConfig:
    """Reload the global configuration from disk."""
    global _global_config
    _global_config = get_effective_config()
    return _global_config
