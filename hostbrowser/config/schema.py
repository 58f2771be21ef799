"""Configuration schema using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Base(BaseModel):
    """Base model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RemoteConfig(Base):
    """Hosted-browser execution service connection."""

    endpoint: str = "https://chrome.browserless.io"
    token: str = ""
    function_timeout_ms: int = Field(default=60000, ge=1000, le=600000)
    capability_timeout_ms: int = Field(default=30000, ge=1000, le=600000)


class SearchConfig(Base):
    """Search intent template settings."""

    engine_url: str = "https://www.google.com"
    input_selector: str = "input[name='q']"
    result_selector: str = "h3"
    default_max_results: int = Field(default=5, ge=1)
    max_results_limit: int = Field(default=20, ge=1)


class ScrapeConfig(Base):
    """Scrape and screenshot intent settings."""

    navigation_timeout_ms: int = Field(default=30000, ge=1000)
    settle_ms: int = Field(default=2000, ge=0)
    allow_private_network: bool = False


class BatchConfig(Base):
    """Batch sequencing policy."""

    delay_ms: int = Field(default=2000, ge=0)
    max_items: int = Field(default=50, ge=1)


class Config(Base):
    """Root configuration for hostbrowser."""

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    scrape: ScrapeConfig = Field(default_factory=ScrapeConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    seed: int | None = None
