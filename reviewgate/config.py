"""
Configuration loading.

The review configuration lives in a YAML file (default
config/review-criteria.yml) and is validated with Pydantic. Secrets are
read from the environment only; `load_dotenv()` is called by the CLI.

Any problem here is fatal and raised as ConfigError before analysis starts.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from reviewgate.models import BranchPolicy, FilterRuleSet

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "review-criteria.yml"

# Environment variables each provider needs before any call is made
REQUIRED_ENV = {
    "openai": ["OPENAI_API_KEY"],
    "anthropic": ["ANTHROPIC_API_KEY"],
    "local": [],
}


class ConfigError(Exception):
    """Missing or malformed configuration. Stops the run."""
    pass


class GlobalSettings(BaseModel):
    """File selection and dispatch settings shared by every branch."""

    include_extensions: List[str] = Field(default_factory=list)
    exclude_patterns: List[str] = Field(default_factory=list)
    concurrency_limit: int = Field(3, ge=1, description="Files analyzed simultaneously per batch")
    max_content_length: int = Field(3000, ge=1, description="Characters sent per file before truncation")

    @property
    def rules(self) -> FilterRuleSet:
        return FilterRuleSet(
            include_extensions=list(self.include_extensions),
            exclude_patterns=list(self.exclude_patterns),
        )


class LLMSettings(BaseModel):
    """Analysis service settings."""

    provider: Literal["openai", "anthropic", "local"] = "openai"
    model: str = "gpt-4"
    max_tokens: int = Field(2000, ge=1)
    temperature: float = Field(0.1, ge=0.0, le=2.0)
    timeout: int = Field(30, ge=1, description="Seconds per analysis call")
    system_prompt: Optional[str] = None


class ReviewConfig(BaseModel):
    """Complete review configuration."""

    model_config = {"populate_by_name": True}

    global_settings: GlobalSettings = Field(default_factory=GlobalSettings, alias="global")
    llm: LLMSettings = Field(default_factory=LLMSettings)
    branches: Dict[str, BranchPolicy] = Field(default_factory=dict)

    @field_validator("branches", mode="before")
    @classmethod
    def _lowercase_branch_names(cls, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("branches must be a mapping of branch name to policy")
        return {str(name).lower(): policy for name, policy in value.items()}

    def policy_for(self, branch: str) -> Optional[BranchPolicy]:
        """Policy for `branch`, or None when the branch is not configured."""
        return self.branches.get(branch.lower())


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> ReviewConfig:
    """Load and validate the YAML review configuration."""
    path = Path(path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping")

    try:
        config = ReviewConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    if not config.global_settings.include_extensions:
        logger.warning("No include_extensions configured - no files will be reviewed")

    logger.info(f"Loaded configuration from {path} ({len(config.branches)} branch policies)")
    return config


def validate_environment(provider: str) -> None:
    """Fail fast when the provider's credentials are not set."""
    if provider not in REQUIRED_ENV:
        raise ConfigError(f"Unsupported LLM provider: {provider}")

    missing = [key for key in REQUIRED_ENV[provider] if not os.getenv(key)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
