"""Semantic analysis produced outside this package (AI tagging, captions).

Raw payloads are validated here so taxonomy fields only ever hold known
enum members.
"""

from __future__ import annotations

import re
from typing import Any, List

from pydantic import AliasChoices, BaseModel, Field, field_validator

from domain.enums import CompositionType, GameGenre, HookType, VisualDensity, VisualStyle

OTHER_PROJECT = "other"


class SemanticAnalysis(BaseModel):
    title: str = ""
    # studio title the creative advertises; free text normalised to a slug
    project: str = OTHER_PROJECT
    genre: GameGenre = GameGenre.unknown
    style: VisualStyle = VisualStyle.unknown
    composition: CompositionType = CompositionType.unknown
    hook_type: HookType = Field(HookType.unknown, validation_alias=AliasChoices("hook_type", "hook", "hookType"))
    visual_density: VisualDensity = Field(
        VisualDensity.unknown, validation_alias=AliasChoices("visual_density", "density", "visualDensity"))
    tags: List[str] = Field(default_factory=list)
    main_subject: str = Field("", validation_alias=AliasChoices("main_subject", "subject", "mainSubject"))
    ui_elements: List[str] = Field(default_factory=list, validation_alias=AliasChoices("ui_elements", "ui", "uiElements"))
    target_audience: str = Field("", validation_alias=AliasChoices("target_audience", "audience", "targetAudience"))
    hook_strength: int = Field(0, ge=0, le=100, validation_alias=AliasChoices("hook_strength", "hookStrength"))
    risk_score: int = Field(0, ge=0, le=100, validation_alias=AliasChoices("risk_score", "riskScore"))

    @field_validator("project", mode="before")
    @classmethod
    def _project(cls, v: Any) -> str:
        slug = re.sub(r"[^\w]+", "_", str(v or "").strip().lower()).strip("_")
        return slug or OTHER_PROJECT

    @field_validator("genre", mode="before")
    @classmethod
    def _genre(cls, v: Any) -> GameGenre:
        return GameGenre.coerce(v)

    @field_validator("style", mode="before")
    @classmethod
    def _style(cls, v: Any) -> VisualStyle:
        return VisualStyle.coerce(v)

    @field_validator("composition", mode="before")
    @classmethod
    def _composition(cls, v: Any) -> CompositionType:
        return CompositionType.coerce(v)

    @field_validator("hook_type", mode="before")
    @classmethod
    def _hook_type(cls, v: Any) -> HookType:
        return HookType.coerce(v)

    @field_validator("visual_density", mode="before")
    @classmethod
    def _density(cls, v: Any) -> VisualDensity:
        return VisualDensity.coerce(v)

    @field_validator("tags", "ui_elements", mode="before")
    @classmethod
    def _split_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("hook_strength", "risk_score", mode="before")
    @classmethod
    def _clamp_score(cls, v: Any) -> int:
        if v is None or v == "":
            return 0
        return max(0, min(100, int(round(float(v)))))

    def embedding_text(self) -> str:
        """One line describing the creative, fed to the embedder."""
        parts = [
            self.title,
            f"genre {self.genre.value}",
            f"hook {self.hook_type.value}",
            f"style {self.style.value}",
        ]
        if self.tags:
            parts.append(" ".join(self.tags))
        return " | ".join(p for p in parts if p)
