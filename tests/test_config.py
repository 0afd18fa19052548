import pytest

from reflow_lib.config import ReflowConfig, load_config, save_config


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(str(tmp_path / "absent.ini"))
    assert config == ReflowConfig()
    assert config.max_chars_per_page == 800
    assert config.ocr_language == "en"


def test_ini_values_override_defaults(tmp_path):
    path = tmp_path / "reflow.ini"
    path.write_text(
        "[Pagination]\n"
        "max_chars_per_page = 1200\n"
        "widow_merge_tolerance = 1.2\n"
        "[Layout]\n"
        "isolate_headings = no\n"
        "[OCR]\n"
        "ocr_language = es\n"
        "text_threshold = not-a-number\n"
    )
    config = load_config(str(path))
    assert config.max_chars_per_page == 1200
    assert config.widow_merge_tolerance == 1.2
    assert config.isolate_headings is False
    assert config.ocr_language == "es"
    assert config.text_threshold == 50


def test_saved_settings_load_back(tmp_path):
    path = tmp_path / "saved.ini"
    config = ReflowConfig(max_chars_per_page=500, ocr_enabled=False, word_gap_factor=0.5)
    save_config(config, str(path))
    assert load_config(str(path)) == config


def test_replace_ignores_unset_overrides():
    config = ReflowConfig().replace(max_chars_per_page=None, ocr_language="fr")
    assert config.max_chars_per_page == 800
    assert config.ocr_language == "fr"


@pytest.mark.parametrize(
    "overrides",
    [{"max_chars_per_page": 0}, {"header_footer_margin": 0.6}, {"ocr_max_workers": 0}],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValueError):
        ReflowConfig(**overrides)
