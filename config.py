from typing import Optional

from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    bot_token: str = Field("", validation_alias=AliasChoices("BOT_TOKEN", "bot_token"))
    db_url: str = Field("sqlite:///creatives.db", validation_alias=AliasChoices("DB_URL", "db_url"))
    creatives_dir: str = Field("data/creatives", validation_alias=AliasChoices("CREATIVES_DIR", "creatives_dir"))
    # pixel sampler: longest side after downscale, every Nth pixel
    sample_max_side: int = Field(200, validation_alias=AliasChoices("SAMPLE_MAX_SIDE", "sample_max_side"))
    sample_stride: int = Field(5, validation_alias=AliasChoices("SAMPLE_STRIDE", "sample_stride"))
    transcode_max_width: int = Field(1024, validation_alias=AliasChoices("TRANSCODE_MAX_WIDTH", "transcode_max_width"))
    transcode_quality: float = Field(0.85, validation_alias=AliasChoices("TRANSCODE_QUALITY", "transcode_quality"))
    similar_top_k: int = Field(4, validation_alias=AliasChoices("SIMILAR_TOP_K", "similar_top_k"))
    trend_clusters: int = Field(3, validation_alias=AliasChoices("TREND_CLUSTERS", "trend_clusters"))
    cluster_max_iterations: int = Field(20, validation_alias=AliasChoices("CLUSTER_MAX_ITERATIONS", "cluster_max_iterations"))
    cluster_seed: Optional[int] = Field(None, validation_alias=AliasChoices("CLUSTER_SEED", "cluster_seed"))  # None -> system entropy
    embedding_dim: int = Field(256, validation_alias=AliasChoices("EMBEDDING_DIM", "embedding_dim"))
