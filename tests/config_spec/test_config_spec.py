"""Tests for ConfigSpec parsing, linting, defaults and JSON Schema export."""

from datetime import timedelta

import pytest

from ConfigSpec import (
    ConfigParseError,
    ConfigSpec,
    FieldDeclarationError,
    LintRule,
    ParsedConfig,
    new_bool_field,
    new_duration_field,
    new_int_field,
    new_object_field,
    new_string_field,
)


def _http_spec() -> ConfigSpec:
    return ConfigSpec(
        new_object_field(
            "http",
            new_duration_field("timeout").with_description("Request timeout.").with_default("5s"),
            new_bool_field("verify").with_default(True),
            new_string_field("proxy").optional(),
        ),
        new_int_field("workers").with_default(4),
    )


class TestParse:
    """Validation and default resolution."""

    def test_empty_input_resolves_defaults(self):
        parsed = _http_spec().parse({})
        assert isinstance(parsed, ParsedConfig)
        assert parsed.field_duration("http", "timeout") == timedelta(seconds=5)
        assert parsed.field_bool("http", "verify") is True
        assert parsed.contains("http", "proxy")
        assert parsed.raw("http", "proxy") is None
        assert parsed.field_int("workers") == 4

    def test_none_input_treated_as_empty(self):
        assert _http_spec().parse(None).field_int("workers") == 4

    def test_user_values_override_defaults(self):
        parsed = _http_spec().parse({"http": {"timeout": "1m30s", "proxy": "http://p"}})
        assert parsed.field_duration("http", "timeout") == timedelta(seconds=90)
        assert parsed.field_string("http", "proxy") == "http://p"

    def test_invalid_duration_reports_path(self):
        with pytest.raises(ConfigParseError) as excinfo:
            _http_spec().parse({"http": {"timeout": "forever"}})
        issues = excinfo.value.issues
        assert len(issues) == 1
        assert issues[0].path == ("http", "timeout")
        assert "invalid duration" in issues[0].message

    def test_unknown_keys_rejected(self):
        with pytest.raises(ConfigParseError) as excinfo:
            _http_spec().parse({"http": {"timeuot": "5s"}})
        assert excinfo.value.issues[0].path == ("http", "timeuot")

    def test_all_validation_issues_reported(self):
        with pytest.raises(ConfigParseError) as excinfo:
            _http_spec().parse({"http": {"timeout": "x"}, "workers": "many"})
        paths = {issue.path for issue in excinfo.value.issues}
        assert paths == {("http", "timeout"), ("workers",)}

    def test_bool_fields_are_strict(self):
        with pytest.raises(ConfigParseError) as excinfo:
            _http_spec().parse({"http": {"verify": "off"}})
        assert excinfo.value.issues[0].path == ("http", "verify")
        assert _http_spec().parse({"http": {"verify": False}}).field_bool("http", "verify") is False

    def test_required_field_missing(self):
        spec = ConfigSpec(new_string_field("name"))
        with pytest.raises(ConfigParseError) as excinfo:
            spec.parse({})
        assert excinfo.value.issues[0].path == ("name",)

    def test_object_with_required_child_is_required(self):
        spec = ConfigSpec(new_object_field("db", new_string_field("dsn")))
        with pytest.raises(ConfigParseError):
            spec.parse({})
        assert spec.parse({"db": {"dsn": "sqlite://"}}).field_string("db", "dsn") == "sqlite://"

    def test_root_must_be_mapping(self):
        with pytest.raises(ConfigParseError, match="config root must be an object"):
            _http_spec().parse(["nope"])  # type: ignore[arg-type]

    def test_names_clashing_with_model_attributes(self):
        spec = ConfigSpec(new_string_field("schema").with_default("v1"), new_int_field("copy").with_default(2))
        parsed = spec.parse({"schema": "v2"})
        assert parsed.field_string("schema") == "v2"
        assert parsed.field_int("copy") == 2


class TestSpecComposition:
    """Spec construction helpers."""

    def test_duplicate_top_level_fields_rejected(self):
        with pytest.raises(FieldDeclarationError):
            ConfigSpec(new_string_field("a"), new_string_field("a"))

    def test_with_field_returns_new_spec(self):
        base = ConfigSpec(new_string_field("a").with_default("x"))
        extended = base.with_field(new_int_field("b").with_default(1))
        assert [f.name for f in base.fields] == ["a"]
        assert [f.name for f in extended.fields] == ["a", "b"]
        assert extended.field("b").default == 1

    def test_model_built_once(self):
        spec = _http_spec()
        assert spec.model is spec.model


class TestLint:
    """Object-level lint rules."""

    @staticmethod
    def _spec() -> ConfigSpec:
        rule = LintRule(
            "timeout_cap",
            lambda values: ["timeout exceeds 1m"] if values["timeout"] > timedelta(minutes=1) else [],
        )
        return ConfigSpec(
            new_object_field("http", new_duration_field("timeout").with_default("5s")).with_lint_rule(rule)
        )

    def test_lint_returns_issues(self):
        issues = self._spec().lint({"http": {"timeout": "2m"}})
        assert [(i.path, i.rule, i.message) for i in issues] == [
            (("http",), "timeout_cap", "timeout exceeds 1m")
        ]

    def test_parse_fails_on_lint_issue(self):
        with pytest.raises(ConfigParseError, match="timeout exceeds 1m"):
            self._spec().parse({"http": {"timeout": "2m"}})

    def test_parse_can_skip_lint(self):
        parsed = self._spec().parse({"http": {"timeout": "2m"}}, lint=False)
        assert parsed.field_duration("http", "timeout") == timedelta(minutes=2)

    def test_clean_config_has_no_issues(self):
        assert self._spec().lint({}) == []

    def test_nested_objects_are_linted(self):
        rule = LintRule("always", lambda values: ["flagged"])
        spec = ConfigSpec(
            new_object_field("outer", new_object_field("inner", new_int_field("n").with_default(1)).with_lint_rule(rule))
        )
        issues = spec.lint({})
        assert [issue.path for issue in issues] == [("outer", "inner")]


class TestSchemaAndDefaults:
    """JSON Schema export and defaults rendering."""

    def test_json_schema_carries_field_metadata(self):
        schema = _http_spec().json_schema()
        http_ref = schema["properties"]["http"]
        assert "http" in schema["properties"] and "workers" in schema["properties"]
        defs = schema["$defs"]
        http_def = next(iter(d for d in defs.values() if "timeout" in d.get("properties", {})))
        timeout = http_def["properties"]["timeout"]
        assert timeout["type"] == "string"
        assert timeout["description"] == "Request timeout."
        assert timeout["default"] == "5s"
        assert http_ref is not None

    def test_defaults_render_literals(self):
        assert _http_spec().defaults() == {
            "http": {"timeout": "5s", "verify": True, "proxy": None},
            "workers": 4,
        }

    def test_defaults_require_complete_spec(self):
        with pytest.raises(ConfigParseError):
            ConfigSpec(new_string_field("name")).defaults()
