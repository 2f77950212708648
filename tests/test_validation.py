"""
Tests for deprecheck.validation module.

Tests config validation including:
- Valid configs
- Errors for missing or mistyped fields
- Warnings for configs that load but can never produce a state
"""

from __future__ import annotations

from deprecheck.validation import validate_config


class TestValidateConfig:
    """Tests for validate_config."""

    def test_valid_config(self, create_yaml_file, sample_config_data):
        result = validate_config(create_yaml_file("c.yaml", sample_config_data))

        assert result.status == "valid"
        assert result.errors == []
        assert result.warnings == []

    def test_missing_file(self, tmp_test_dir):
        result = validate_config(tmp_test_dir / "missing.yaml")
        assert result.status == "invalid"
        assert "not found" in result.errors[0]

    def test_invalid_yaml(self, tmp_test_dir):
        path = tmp_test_dir / "bad.yaml"
        path.write_text("checker: [unclosed", encoding="utf-8")
        result = validate_config(path)
        assert result.status == "invalid"
        assert "Invalid YAML" in result.errors[0]

    def test_missing_api_version_and_checker(self, create_yaml_file):
        result = validate_config(create_yaml_file("c.yaml", {"other": 1}))
        assert "Missing required field: apiVersion" in result.errors
        assert "Missing required section: checker" in result.errors

    def test_endpoint_must_be_http_url(self, create_yaml_file, sample_config_data):
        sample_config_data["checker"]["endpoint"] = "ftp://example.com/state.json"
        result = validate_config(create_yaml_file("c.yaml", sample_config_data))
        assert result.status == "invalid"
        assert any("http(s) URL" in e for e in result.errors)

    def test_bad_types(self, create_yaml_file, sample_config_data):
        sample_config_data["checker"].update(
            {"ttl": "forever", "timeout": -1, "headers": ["x"], "key_path": 5}
        )
        result = validate_config(create_yaml_file("c.yaml", sample_config_data))

        assert result.status == "invalid"
        joined = "\n".join(result.errors)
        assert "checker.ttl" in joined
        assert "checker.timeout" in joined
        assert "checker.headers" in joined
        assert "checker.key_path" in joined

    def test_empty_key_path_warns(self, create_yaml_file, sample_config_data):
        sample_config_data["checker"]["key_path"] = ""
        result = validate_config(create_yaml_file("c.yaml", sample_config_data))
        assert result.status == "valid"
        assert any("key_path is empty" in w for w in result.warnings)

    def test_empty_segment_warns(self, create_yaml_file, sample_config_data):
        sample_config_data["checker"]["key_path"] = "info..state"
        result = validate_config(create_yaml_file("c.yaml", sample_config_data))
        assert any("empty segment" in w for w in result.warnings)

    def test_no_state_strings_warns(self, create_yaml_file, sample_config_data):
        del sample_config_data["checker"]["states"]
        result = validate_config(create_yaml_file("c.yaml", sample_config_data))
        assert result.status == "valid"
        assert any("No state strings" in w for w in result.warnings)

    def test_duplicate_state_strings_warn(self, create_yaml_file, sample_config_data):
        sample_config_data["checker"]["states"] = {"ok": "x", "deprecated": "x"}
        result = validate_config(create_yaml_file("c.yaml", sample_config_data))
        assert any("never match" in w for w in result.warnings)
