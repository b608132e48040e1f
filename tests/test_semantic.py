import json

import numpy as np
import pytest
from pydantic import ValidationError

from domain.analysis import SemanticAnalysis
from domain.dtos import EncodedImage
from domain.enums import CompositionType, GameGenre, HookType, VisualDensity, VisualStyle
from services.semantic import HashingEmbedder, HintsDescriber, load_sidecar, parse_caption


@pytest.mark.parametrize("raw,expected", [
    ("SLG (策略)", GameGenre.slg),
    ("rpg", GameGenre.rpg),
    ("Puzzle (益智/三消)", GameGenre.puzzle),
    ("battle royale", GameGenre.unknown),
    (None, GameGenre.unknown),
    (GameGenre.casino, GameGenre.casino),
])
def test_genre_coercion(raw, expected):
    assert GameGenre.coerce(raw) is expected


def test_other_taxonomies_coerce():
    assert HookType.coerce("Power Up") is HookType.power_up
    assert HookType.coerce("before-after") is HookType.before_after
    assert VisualStyle.coerce("Low Poly") is VisualStyle.low_poly
    assert CompositionType.coerce("rule of thirds") is CompositionType.rule_of_thirds
    assert VisualDensity.coerce("High") is VisualDensity.high
    assert CompositionType.coerce("diagonal") is CompositionType.unknown


def test_analysis_validates_raw_payload():
    a = SemanticAnalysis.model_validate({
        "title": "Merge dragons",
        "genre": "Casual (休闲)",
        "hook_type": "something new",
        "tags": "merge, dragon , ",
        "hook_strength": 140,
        "risk_score": "12.6",
    })
    assert a.genre is GameGenre.casual
    assert a.hook_type is HookType.unknown
    assert a.tags == ["merge", "dragon"]
    assert a.hook_strength == 100
    assert a.risk_score == 13


def test_analysis_rejects_non_numeric_scores():
    with pytest.raises(ValidationError):
        SemanticAnalysis.model_validate({"hook_strength": "strong"})


def test_embedding_text():
    a = SemanticAnalysis(title="Tower rush", genre="slg", hook_type="crisis", tags=["tower", "rush"])
    assert a.embedding_text() == "Tower rush | genre slg | hook crisis | style unknown | tower rush"


def test_hints_describer():
    image = EncodedImage(data=b"", media_type="image/jpeg", width=1, height=1)
    a = HintsDescriber().describe(image, {"title": "x", "style": "anime"})
    assert a.style is VisualStyle.anime


def test_parse_caption():
    hints = parse_caption("Dragon merge\nGenre: casual\nhook: power up\ntags: merge, dragon\nnote: ignored")
    assert hints == {
        "title": "Dragon merge",
        "genre": "casual",
        "hook_type": "power up",
        "tags": "merge, dragon",
    }
    assert parse_caption(None) == {}


def test_load_sidecar(tmp_path):
    image = tmp_path / "ad.png"
    assert load_sidecar(image) == {}
    (tmp_path / "ad.json").write_text(json.dumps({"title": "Ad", "tags": ["a"]}), encoding="utf-8")
    assert load_sidecar(image) == {"title": "Ad", "tags": ["a"]}
    (tmp_path / "ad.json").write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_sidecar(image)


def test_hashing_embedder():
    emb = HashingEmbedder(dim=32)
    v = emb.embed("castle siege strategy")
    assert len(v) == 32
    assert np.linalg.norm(v) == pytest.approx(1.0, rel=1e-5)
    assert emb.embed("castle siege strategy") == v
    assert emb.embed("") == []


@pytest.mark.parametrize("field,label,expected", [
    ("genre", "SLG (策略)", GameGenre.slg),
    ("genre", "RPG (角色扮演)", GameGenre.rpg),
    ("genre", "Casual (休闲)", GameGenre.casual),
    ("genre", "Puzzle (益智/三消)", GameGenre.puzzle),
    ("genre", "Simulation (模拟经营)", GameGenre.simulation),
    ("genre", "Action (动作/射击)", GameGenre.action),
    ("genre", "Casino (博彩/棋牌)", GameGenre.casino),
    ("genre", "Unknown (其他)", GameGenre.unknown),
    ("style", "写实 3D", VisualStyle.realistic_3d),
    ("style", "欧美卡通 2D", VisualStyle.cartoon_2d),
    ("style", "日韩二次元", VisualStyle.anime),
    ("style", "像素风", VisualStyle.pixel),
    ("style", "低多边形 (Low Poly)", VisualStyle.low_poly),
    ("style", "扁平极简", VisualStyle.minimalist),
    ("composition", "中心聚焦", CompositionType.centered),
    ("composition", "三分法", CompositionType.rule_of_thirds),
    ("composition", "左右/上下对冲 (VS)", CompositionType.split_vs),
    ("composition", "第一人称视角", CompositionType.first_person),
    ("composition", "等轴测 (2.5D上帝视角)", CompositionType.isometric),
    ("composition", "网格/宫格布局", CompositionType.grid),
    ("composition", "UI 引导主导", CompositionType.ui_heavy),
    ("hook_type", "失败挽留 (Fail Run)", HookType.fail_run),
    ("hook_type", "战力碾压 (Power Up)", HookType.power_up),
    ("hook_type", "逆袭/整容 (Before/After)", HookType.before_after),
    ("hook_type", "生存危机 (Crisis)", HookType.crisis),
    ("hook_type", "抽卡爽感 (Gacha)", HookType.gacha),
    ("hook_type", "解压/强迫症 (ASMR/Relax)", HookType.relax),
    ("hook_type", "玩法误导 (Misleading)", HookType.misleading),
    ("hook_type", "社交/情缘 (Social)", HookType.social),
    ("visual_density", "Medium", VisualDensity.medium),
])
def test_tagging_labels_map_to_members(field, label, expected):
    a = SemanticAnalysis.model_validate({field: label})
    assert getattr(a, field) is expected


def test_short_and_camel_case_keys(tmp_path):
    image = tmp_path / "ad.png"
    (tmp_path / "ad.json").write_text(json.dumps({
        "title": "t",
        "hook": "fail run",
        "density": "high",
        "subject": "knight",
        "audience": "men 25-40",
        "ui": "button, hand cursor",
    }), encoding="utf-8")
    a = HintsDescriber().describe(EncodedImage(b"", "image/jpeg", 1, 1), load_sidecar(image))
    assert a.hook_type is HookType.fail_run
    assert a.visual_density is VisualDensity.high
    assert a.main_subject == "knight"
    assert a.target_audience == "men 25-40"
    assert a.ui_elements == ["button", "hand cursor"]

    camel = SemanticAnalysis.model_validate({
        "hookType": "Gacha", "visualDensity": "Low", "mainSubject": "dragon",
        "uiElements": ["HealthBar"], "hookStrength": 88.4, "riskScore": 7,
    })
    assert camel.hook_type is HookType.gacha
    assert camel.visual_density is VisualDensity.low
    assert camel.main_subject == "dragon"
    assert camel.ui_elements == ["HealthBar"]
    assert (camel.hook_strength, camel.risk_score) == (88, 7)

    # field names still win a round trip through storage
    assert SemanticAnalysis.model_validate_json(camel.model_dump_json()) == camel


@pytest.mark.parametrize("raw,expected", [
    (None, "other"),
    ("", "other"),
    ("  ", "other"),
    ("Clash of Kingdoms", "clash_of_kingdoms"),
    ("Merge-Dragons!", "merge_dragons"),
])
def test_project_slug(raw, expected):
    assert SemanticAnalysis.model_validate({"project": raw}).project == expected
    assert SemanticAnalysis().project == "other"
