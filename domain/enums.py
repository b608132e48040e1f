from __future__ import annotations
import re
from enum import Enum

class ProcessingStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"

class AspectRatio(str, Enum):
    square = "1:1"
    portrait_9_16 = "9:16"
    portrait_3_4 = "3:4"
    landscape_4_3 = "4:3"
    landscape_16_9 = "16:9"

    @staticmethod
    def from_size(width: int, height: int, tolerance: float = 0.1) -> "AspectRatio":
        ratio = width / height
        # checked in order; the first reference within tolerance wins
        for label, ref in _ASPECT_REFERENCES:
            if abs(ratio - ref) < tolerance:
                return label
        return AspectRatio.landscape_16_9


_ASPECT_REFERENCES = (
    (AspectRatio.square, 1.0),
    (AspectRatio.portrait_9_16, 9 / 16),
    (AspectRatio.portrait_3_4, 3 / 4),
    (AspectRatio.landscape_4_3, 4 / 3),
)


class TaxonomyEnum(str, Enum):
    """Closed label set; anything unrecognised becomes ``unknown``."""

    @classmethod
    def coerce(cls, raw: object) -> "TaxonomyEnum":
        if isinstance(raw, cls):
            return raw
        if raw is None:
            return cls("unknown")
        text = str(raw).strip().lower()
        aliases = _LABEL_ALIASES.get(cls, {})
        # "SLG (策略)", "失败挽留 (Fail Run)": try the whole label, then either half
        head, _, tail = text.partition("(")
        for candidate in (text, head.strip(), tail.rstrip(")").strip()):
            if not candidate:
                continue
            key = re.sub(r"[\s\-/]+", "_", candidate)
            for member in cls:
                if key == member.value or key == member.name:
                    return member
            if candidate in aliases:
                return cls(aliases[candidate])
            if key in aliases:
                return cls(aliases[key])
        return cls("unknown")


class GameGenre(TaxonomyEnum):
    slg = "slg"
    rpg = "rpg"
    casual = "casual"
    puzzle = "puzzle"
    simulation = "simulation"
    action = "action"
    casino = "casino"
    unknown = "unknown"

class VisualStyle(TaxonomyEnum):
    realistic_3d = "realistic_3d"
    cartoon_2d = "cartoon_2d"
    anime = "anime"
    pixel = "pixel"
    low_poly = "low_poly"
    minimalist = "minimalist"
    unknown = "unknown"

class CompositionType(TaxonomyEnum):
    centered = "centered"
    rule_of_thirds = "rule_of_thirds"
    split_vs = "split_vs"
    first_person = "first_person"
    isometric = "isometric"
    grid = "grid"
    ui_heavy = "ui_heavy"
    unknown = "unknown"

class HookType(TaxonomyEnum):
    fail_run = "fail_run"
    power_up = "power_up"
    before_after = "before_after"
    crisis = "crisis"
    gacha = "gacha"
    relax = "relax"
    misleading = "misleading"
    social = "social"
    unknown = "unknown"

class VisualDensity(TaxonomyEnum):
    high = "high"
    medium = "medium"
    low = "low"
    unknown = "unknown"

class PerformanceLevel(str, Enum):
    unrated = "unrated"
    low = "low"
    medium = "medium"
    high = "high"

    @staticmethod
    def coerce(raw: object) -> "PerformanceLevel":
        if isinstance(raw, PerformanceLevel):
            return raw
        try:
            return PerformanceLevel(str(raw).strip().lower())
        except ValueError:
            return PerformanceLevel.unrated


def _aliases(table: dict) -> dict:
    return {label.lower(): value for label, value in table.items()}

# labels as emitted by the upstream tagging prompt
_LABEL_ALIASES = {
    VisualStyle: _aliases({
        "写实 3D": "realistic_3d",
        "欧美卡通 2D": "cartoon_2d",
        "日韩二次元": "anime",
        "像素风": "pixel",
        "低多边形": "low_poly",
        "扁平极简": "minimalist",
    }),
    CompositionType: _aliases({
        "中心聚焦": "centered",
        "三分法": "rule_of_thirds",
        "左右/上下对冲": "split_vs",
        "vs": "split_vs",
        "第一人称视角": "first_person",
        "等轴测": "isometric",
        "2.5d上帝视角": "isometric",
        "网格/宫格布局": "grid",
        "ui 引导主导": "ui_heavy",
    }),
    HookType: _aliases({
        "失败挽留": "fail_run",
        "战力碾压": "power_up",
        "逆袭/整容": "before_after",
        "生存危机": "crisis",
        "抽卡爽感": "gacha",
        "解压/强迫症": "relax",
        "asmr_relax": "relax",
        "asmr": "relax",
        "玩法误导": "misleading",
        "社交/情缘": "social",
    }),
    GameGenre: _aliases({
        "策略": "slg",
        "角色扮演": "rpg",
        "休闲": "casual",
        "益智/三消": "puzzle",
        "模拟经营": "simulation",
        "动作/射击": "action",
        "博彩/棋牌": "casino",
        "其他": "unknown",
    }),
}
