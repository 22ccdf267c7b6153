import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from clearview_core.runtime_config import EngineRuntimeConfig, _parse_float


class ClearviewConfig(BaseModel):
    """
    Configuration for the ClearView Core Engine.
    Decouples the engine from environment variables.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Generation
    openai_api_key: Optional[str] = Field(None, description="OpenAI API Key for generation calls")
    openai_model: str = Field("gpt-5", description="Model used for every generation call")

    # Search
    exa_api_key: Optional[str] = Field(None, description="Exa API Key for neural search")

    # Citation lookups
    crossref_email: Optional[str] = Field(None, description="Contact email for the CrossRef polite pool")

    # Cache
    redis_url: Optional[str] = Field(None, description="Redis URL; cache is disabled when unset")

    # Cost control
    daily_cost_cap: float = Field(50.0, description="Maximum generation spend per UTC day, in USD")

    runtime: EngineRuntimeConfig = Field(default_factory=EngineRuntimeConfig.defaults)

    @classmethod
    def from_env(cls) -> "ClearviewConfig":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=(os.getenv("OPENAI_MODEL") or "gpt-5").strip(),
            exa_api_key=os.getenv("EXA_API_KEY") or None,
            crossref_email=os.getenv("CROSSREF_EMAIL") or None,
            redis_url=os.getenv("REDIS_URL") or None,
            daily_cost_cap=_parse_float(os.getenv("DAILY_COST_CAP"), default=50.0, min_v=0.0, max_v=100_000.0),
            runtime=EngineRuntimeConfig.load_from_env(),
        )

    def to_safe_log_dict(self) -> dict:
        return {
            "openai_model": self.openai_model,
            "openai_configured": bool(self.openai_api_key),
            "exa_configured": bool(self.exa_api_key),
            "crossref_email_set": bool(self.crossref_email),
            "redis_configured": bool(self.redis_url),
            "daily_cost_cap": self.daily_cost_cap,
            "runtime": self.runtime.to_safe_log_dict(),
        }
