import pytest

from eraser.trivy_config import (
    Config,
    TimeoutConfig,
    VulnConfig,
    config_from_mapping,
    default_config,
    load_config,
    parse_comma_separated_options,
    parse_duration,
    true_keys,
)


def _fresh():
    return {"one": False, "two": False}


def test_parse_comma_separated_unknown_options():
    m = _fresh()
    with pytest.raises(ValueError, match="'three' was not one of"):
        parse_comma_separated_options(m, "three,four")
    assert m == {"one": False, "two": False}


def test_parse_comma_separated_all_options():
    m = _fresh()
    parse_comma_separated_options(m, "one,two")
    assert m == {"one": True, "two": True}


def test_parse_comma_separated_single_option():
    m = _fresh()
    parse_comma_separated_options(m, "two")
    assert m == {"one": False, "two": True}


def test_parse_comma_separated_empty_string_is_unknown():
    with pytest.raises(ValueError):
        parse_comma_separated_options(_fresh(), "")


def test_true_keys():
    assert true_keys({"one": True, "two": False, "three": True}) == ["one", "three"]
    assert true_keys({}) == []


def test_default_config_values():
    cfg = default_config()
    assert cfg.cache_dir == "/var/lib/trivy"
    assert cfg.db_repo == "ghcr.io/aquasecurity/trivy-db"
    assert cfg.delete_failed_images is True
    assert cfg.vulnerabilities == VulnConfig(
        ignore_unfixed=True,
        types=["os", "library"],
        security_checks=["vuln"],
        severities=["CRITICAL"],
    )
    assert cfg.timeout.total == parse_duration("23h")
    assert cfg.timeout.per_image == parse_duration("1h")


def test_parse_duration_equivalent_forms():
    assert parse_duration("1h30m") == parse_duration("90m")
    assert parse_duration("0") == 0.0
    assert parse_duration("-1h") == -parse_duration("1h")
    assert parse_duration("1.5h") == parse_duration("90m")


@pytest.mark.parametrize("text", ["", "1", "h", "1x", "1h 2m", "+", 5])
def test_parse_duration_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_config_from_mapping_merges_nested_fields():
    cfg = config_from_mapping({"vulnerabilities": {"ignoreUnfixed": False}, "cacheDir": "/tmp/c"})
    assert cfg.cache_dir == "/tmp/c"
    assert cfg.vulnerabilities.ignore_unfixed is False
    assert cfg.vulnerabilities.types == ["os", "library"]
    assert cfg.vulnerabilities.severities == ["CRITICAL"]


def test_config_from_mapping_none_gives_defaults():
    assert config_from_mapping(None) == default_config()


def test_config_from_mapping_ignores_unknown_keys():
    assert config_from_mapping({"somethingElse": 1}) == Config()


def test_config_from_mapping_timeouts():
    cfg = config_from_mapping({"timeout": {"total": "2h", "perImage": "10m"}})
    assert cfg.timeout == TimeoutConfig(total=parse_duration("2h"), per_image=parse_duration("10m"))


def test_config_from_mapping_wrong_type():
    with pytest.raises(ValueError):
        config_from_mapping({"deleteFailedImages": "yes"})
    with pytest.raises(ValueError):
        config_from_mapping(["not", "a", "mapping"])


def test_load_config_reads_scanner_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "apiVersion: eraser.sh/v1alpha1\n"
        "kind: EraserConfig\n"
        "components:\n"
        "  scanner:\n"
        "    config: |\n"
        "      cacheDir: /var/lib/other\n"
        "      deleteFailedImages: false\n"
        "      vulnerabilities:\n"
        "        severities:\n"
        "        - CRITICAL\n"
        "        - HIGH\n"
    )
    cfg = load_config(path)
    assert cfg.cache_dir == "/var/lib/other"
    assert cfg.delete_failed_images is False
    assert cfg.vulnerabilities.severities == ["CRITICAL", "HIGH"]
    assert cfg.vulnerabilities.ignore_unfixed is True
    assert cfg.db_repo == "ghcr.io/aquasecurity/trivy-db"


def test_load_config_without_scanner_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("kind: EraserConfig\ncomponents:\n  eraser: {}\n")
    assert load_config(path) == default_config()


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")