import pytest

from attrition.config.settings import get_settings


ENV_KEYS = [
    "ATTRITION_BASE_DIR",
    "ATTRITION_DATA_DIR",
    "ATTRITION_OUTPUT_DIR",
    "ATTRITION_MISSING_VALUES",
    "ATTRITION_UPSELL_THRESHOLD",
    "ATTRITION_SKIP_PDF",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        # setenv first so the original state is recorded and restored
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_defaults_follow_base_dir(tmp_path):
    settings = get_settings(tmp_path)
    assert settings.data_dir == tmp_path / "db"
    assert settings.table_dir == tmp_path / "output" / "tables"
    assert settings.fig_dir == tmp_path / "output" / "figures"
    assert settings.missing_values == "exclude"
    assert settings.upsell_threshold == 70.0
    assert settings.skip_pdf is False


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("ATTRITION_MISSING_VALUES", "FAIL")
    monkeypatch.setenv("ATTRITION_UPSELL_THRESHOLD", "80")
    monkeypatch.setenv("ATTRITION_SKIP_PDF", "yes")
    settings = get_settings(tmp_path)
    assert settings.missing_values == "fail"
    assert settings.upsell_threshold == 80.0
    assert settings.skip_pdf is True


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("ATTRITION_UPSELL_THRESHOLD=65\n# comment\n", encoding="utf-8")
    settings = get_settings(tmp_path)
    assert settings.upsell_threshold == 65.0


def test_invalid_policy_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("ATTRITION_MISSING_VALUES", "ignore")
    with pytest.raises(ValueError):
        get_settings(tmp_path)
