from config import Settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    s = Settings()
    assert s.sample_max_side == 200
    assert s.sample_stride == 5
    assert s.transcode_max_width == 1024
    assert s.transcode_quality == 0.85
    assert s.cluster_max_iterations == 20
    assert s.cluster_seed is None
    assert s.bot_token == ""


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CLUSTER_SEED", "7")
    monkeypatch.setenv("DB_URL", "sqlite:///other.db")
    s = Settings()
    assert s.cluster_seed == 7
    assert s.db_url == "sqlite:///other.db"
