"""
Configuration for sciencedao.

Settings come from environment variables (optionally loaded from a ``.env``
file) and are validated into pydantic models. Use ``get_config()`` to access
the process configuration.
"""

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from sciencedao.core.workflow import FundingPolicy

ARXIV_API_URL = "http://export.arxiv.org/api/query"


class LLMConfig(BaseModel):
    """LLM access used by the peer reviewer."""
    openai_api_key: str = ""
    game_api_key: str = ""
    model: str = "gpt-4"
    api_base: Optional[str] = None
    review_temperature: float = Field(0.4, ge=0.0, le=2.0)
    review_max_tokens: int = Field(800, ge=1)
    timeout: float = Field(60.0, gt=0)


class ResearchConfig(BaseModel):
    """Research defaults."""
    default_field: str = "longevity"
    arxiv_api_url: str = ARXIV_API_URL


class CoordinatorConfig(BaseModel):
    """Workflow coordinator settings."""
    review_payment: str = "5"
    curation_payment: str = "10"
    max_datasets: int = Field(3, ge=1)
    funding_policy: FundingPolicy = FundingPolicy.APPROVAL_ONLY
    auto_propose: bool = True
    funding_goal: str = "0.1"
    proposal_duration_days: int = Field(30, ge=1, le=90)


class ChainConfig(BaseModel):
    """On-chain proposal credentials (consumed by proposal clients)."""
    base_rpc_url: str = ""
    wallet_private_key: str = ""


class StorageConfig(BaseModel):
    """Files written or read by the agent."""
    activity_log_file: Path = Path("data/research_log.json")
    hypothesis_file: Path = Path("data/hypotheses.json")
    log_file: Optional[Path] = None
    log_level: str = "INFO"


class ScienceDAOConfig(BaseModel):
    """Complete sciencedao configuration."""
    llm: LLMConfig = Field(default_factory=LLMConfig)
    research: ResearchConfig = Field(default_factory=ResearchConfig)
    coordinator: CoordinatorConfig = Field(default_factory=CoordinatorConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    def missing_credentials(self) -> List[str]:
        """Names of required credentials that are not set."""
        required = {
            "GAME_API_KEY": self.llm.game_api_key,
            "OPENAI_API_KEY": self.llm.openai_api_key,
        }
        return [key for key, value in required.items() if not value]

    def summary(self) -> Dict[str, str]:
        """Configuration overview without exposing secrets."""

        def flag(value: str, missing: str = "✗ Missing") -> str:
            return "✓ Set" if value else missing

        return {
            "GAME API Key": flag(self.llm.game_api_key),
            "OpenAI API Key": flag(self.llm.openai_api_key),
            "Base RPC URL": flag(self.chain.base_rpc_url, "✗ Not Set"),
            "Wallet Private Key": flag(self.chain.wallet_private_key, "✗ Not Set"),
            "Default Research Field": self.research.default_field,
            "LLM Model": self.llm.model,
            "Funding Policy": self.coordinator.funding_policy.value,
            "Funding Goal": f"{self.coordinator.funding_goal} ETH / "
                            f"{self.coordinator.proposal_duration_days} days",
        }


def _bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = None
) -> ScienceDAOConfig:
    """
    Build configuration from environment variables.

    Args:
        env: Mapping to read instead of ``os.environ`` (tests)
        env_file: ``.env`` file to load first; only used when ``env`` is None

    Returns:
        ScienceDAOConfig

    Raises:
        pydantic.ValidationError: If a value is out of range or malformed
    """
    if env is None:
        load_dotenv(env_file)
        env = os.environ

    def get(key: str, default=None):
        value = env.get(key)
        return value if value not in (None, "") else default

    data: Dict[str, Dict] = {
        "llm": {
            "openai_api_key": get("OPENAI_API_KEY", ""),
            "game_api_key": get("GAME_API_KEY", ""),
        },
        "research": {},
        "coordinator": {},
        "chain": {
            "base_rpc_url": get("BASE_RPC_URL", ""),
            "wallet_private_key": get("WALLET_PRIVATE_KEY", ""),
        },
        "storage": {},
    }

    optional = {
        ("llm", "model"): "SCIENCEDAO_LLM_MODEL",
        ("llm", "api_base"): "SCIENCEDAO_LLM_API_BASE",
        ("research", "default_field"): "SCIENCEDAO_RESEARCH_FIELD",
        ("coordinator", "funding_policy"): "SCIENCEDAO_FUNDING_POLICY",
        ("coordinator", "funding_goal"): "SCIENCEDAO_FUNDING_GOAL",
        ("coordinator", "proposal_duration_days"): "SCIENCEDAO_PROPOSAL_DURATION_DAYS",
        ("coordinator", "max_datasets"): "SCIENCEDAO_MAX_DATASETS",
        ("storage", "activity_log_file"): "SCIENCEDAO_ACTIVITY_LOG",
        ("storage", "hypothesis_file"): "SCIENCEDAO_HYPOTHESIS_FILE",
        ("storage", "log_file"): "SCIENCEDAO_LOG_FILE",
        ("storage", "log_level"): "SCIENCEDAO_LOG_LEVEL",
    }
    for (section, key), env_key in optional.items():
        value = get(env_key)
        if value is not None:
            data[section][key] = value

    auto_propose = get("SCIENCEDAO_AUTO_PROPOSE")
    if auto_propose is not None:
        data["coordinator"]["auto_propose"] = _bool(auto_propose)

    return ScienceDAOConfig.model_validate(data)


_config: Optional[ScienceDAOConfig] = None


def get_config(reload: bool = False) -> ScienceDAOConfig:
    """
    Get the process configuration, loading it on first use.

    Args:
        reload: Re-read the environment

    Returns:
        ScienceDAOConfig
    """
    global _config
    if _config is None or reload:
        _config = load_config()
    return _config


def reset_config():
    """Forget the cached configuration."""
    global _config
    _config = None
