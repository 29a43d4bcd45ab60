"""
tests.test_config_engine
~~~~~~~~~~~~~~~~~~~~~~~~~
Unit tests for the pure-Python format engine.  No database access.

Covers:
- FormatDetector            (precedence, determinism, ambiguity)
- JSON / YAML / TOML / ENV  (codec rules)
- ConfigParser              (conversion, validation)
- Value model               (kinds, normalisation)
- ContentValidationService  (schema + variable rules)
"""
from __future__ import annotations

import datetime
import json
import string

import pytest
from hypothesis import given
from hypothesis import strategies as st

from apps.config_core.services import (
    ConfigFormat,
    ConfigParser,
    DetectionError,
    FormatError,
    SchemaViolationError,
    ValueKind,
    VariableRule,
    value_kind,
)
from apps.config_core.services.codecs import EnvCodec, JsonCodec, TomlCodec, YamlCodec
from apps.config_core.services.content_validator import (
    ContentValidationRequest,
    ContentValidationService,
    load_schema,
    resolve_path,
)
from apps.config_core.services.format_detector import FormatDetector
from apps.config_core.services.formats import normalize_value, scalar_to_string

from .conftest import REALISTIC_SCHEMA, REALISTIC_YAML


def _alias_chain(levels: int) -> str:
    """YAML where each level lists the previous one ten times by alias."""
    lines = ['l0: &l0 ["x", "x", "x", "x", "x", "x", "x", "x", "x", "x"]']
    for n in range(1, levels):
        refs = ", ".join([f"*l{n - 1}"] * 10)
        lines.append(f"l{n}: &l{n} [{refs}]")
    return "\n".join(lines) + "\n"


# ===========================================================================
# TestFormatDetection
# ===========================================================================

class TestFormatDetection:

    def test_json_object(self):
        assert FormatDetector.detect('{"a": 1}') is ConfigFormat.JSON

    def test_json_wins_over_yaml(self):
        """Every JSON document is also YAML; JSON is tried first."""
        assert FormatDetector.detect('{"key": "value"}') is ConfigFormat.JSON

    def test_any_json_value_is_detected(self):
        assert FormatDetector.detect("[1, 2, 3]") is ConfigFormat.JSON
        assert FormatDetector.detect("42") is ConfigFormat.JSON

    def test_yaml_mapping(self):
        assert FormatDetector.detect("a: 1") is ConfigFormat.YAML

    def test_realistic_yaml(self):
        assert FormatDetector.detect(REALISTIC_YAML) is ConfigFormat.YAML

    def test_env_looking_text_is_a_yaml_scalar(self):
        """PyYAML reads "A=1\\nB=2" as one plain scalar, so YAML claims it."""
        assert FormatDetector.detect("A=1\nB=2") is ConfigFormat.YAML

    def test_toml_table_is_not_yaml(self):
        assert FormatDetector.detect('[section]\nkey = "value"') is ConfigFormat.TOML

    def test_env_when_everything_else_fails(self):
        assert FormatDetector.detect("A=1\nB=x: y") is ConfigFormat.ENV

    def test_empty_content_raises(self):
        with pytest.raises(DetectionError, match="empty content"):
            FormatDetector.detect("")

    def test_whitespace_only_raises(self):
        with pytest.raises(DetectionError, match="empty content"):
            FormatDetector.detect("  \n\t \n")

    def test_undetectable_raises(self):
        with pytest.raises(DetectionError, match="unable to detect"):
            FormatDetector.detect("key: value\n  bad: [unclosed")

    def test_deeply_nested_brackets_raise_detection_error(self):
        with pytest.raises(DetectionError, match="unable to detect"):
            FormatDetector.detect("[" * 50000 + "]" * 50000)

    def test_self_referencing_alias_is_still_yaml(self):
        assert FormatDetector.detect("a: &x [*x]\n") is ConfigFormat.YAML

    def test_detection_is_deterministic(self):
        text = "A=1\nB=x: y"
        assert FormatDetector.detect(text) == FormatDetector.detect(text)

    def test_looks_like_env_ignores_comments(self):
        assert FormatDetector.looks_like_env("# header\nA=1\n\nB=2") is True
        assert FormatDetector.looks_like_env("# only a comment") is False
        assert FormatDetector.looks_like_env("A=1\nno equals") is False


# ===========================================================================
# TestJsonCodec
# ===========================================================================

class TestJsonCodec:

    def test_integers_parse_as_float(self):
        data = JsonCodec.parse('{"port": 8080}')
        assert data == {"port": 8080.0}
        assert isinstance(data["port"], float)

    def test_nan_is_rejected(self):
        with pytest.raises(FormatError, match="invalid json"):
            JsonCodec.parse('{"a": NaN}')

    def test_top_level_must_be_object(self):
        with pytest.raises(FormatError, match="must be a mapping"):
            JsonCodec.parse("[1, 2]")

    def test_malformed(self):
        with pytest.raises(FormatError) as exc_info:
            JsonCodec.parse("{invalid json")
        assert exc_info.value.format == "json"

    def test_serialize_uses_two_space_indent_and_insertion_order(self):
        assert JsonCodec.serialize({"b": 1.0, "a": "x"}) == '{\n  "b": 1.0,\n  "a": "x"\n}'

    @pytest.mark.parametrize("number", ["1e400", "-1e400", "1" + "0" * 400])
    def test_out_of_range_numbers_are_rejected(self, number):
        with pytest.raises(FormatError, match="invalid json: number out of range"):
            JsonCodec.parse(f'{{"a": {number}}}')

    def test_largest_float_survives_a_round_trip(self):
        data = JsonCodec.parse('{"a": 1.7976931348623157e308}')
        assert JsonCodec.parse(JsonCodec.serialize(data)) == data

    def test_deep_nesting_is_a_format_error(self):
        with pytest.raises(FormatError, match="invalid json"):
            JsonCodec.parse('{"a": ' + "[" * 50000 + "]" * 50000 + "}")


# ===========================================================================
# TestYamlCodec
# ===========================================================================

class TestYamlCodec:

    def test_integers_stay_integers(self):
        data = YamlCodec.parse(REALISTIC_YAML)
        assert data["delay"] == 30
        assert isinstance(data["delay"], int)
        assert data["torznab"][0]["name"] == "prowlarr"
        assert data["includeEpisodes"] is False

    def test_empty_document_is_empty_mapping(self):
        assert YamlCodec.parse("") == {}
        assert YamlCodec.parse("# nothing here\n") == {}

    def test_top_level_must_be_mapping(self):
        with pytest.raises(FormatError, match="yaml document must be a mapping"):
            YamlCodec.parse("- a\n- b\n")

    def test_dates_become_iso_strings(self):
        assert YamlCodec.parse("when: 2024-01-02") == {"when": "2024-01-02"}

    def test_non_string_keys_are_stringified(self):
        assert YamlCodec.parse("1: one\ntrue: x") == {"1": "one", "true": "x"}

    def test_malformed(self):
        with pytest.raises(FormatError, match="invalid yaml"):
            YamlCodec.parse("a: [1, 2")

    def test_serialize_block_style_in_insertion_order(self):
        assert YamlCodec.serialize({"b": 1, "a": {"c": [1, 2]}}) == "b: 1\na:\n  c:\n  - 1\n  - 2\n"

    def test_self_referencing_alias(self):
        with pytest.raises(FormatError, match="refers to itself"):
            ConfigParser.parse_config("a: &x [*x]\n", "yaml")

    def test_deep_nesting_is_a_format_error(self):
        with pytest.raises(FormatError, match="invalid yaml"):
            YamlCodec.parse("a: " + "[" * 50000 + "]" * 50000)

    def test_aliases_are_shared_not_copied(self):
        data = YamlCodec.parse(_alias_chain(4))
        assert data["l3"][0] is data["l3"][9]
        assert data["l3"][0][0][0] is data["l0"]

    def test_alias_expansion_is_bounded(self):
        with pytest.raises(FormatError, match="expands to more than"):
            YamlCodec.parse(_alias_chain(7))


# ===========================================================================
# TestTomlCodec
# ===========================================================================

class TestTomlCodec:

    def test_tables_and_integers(self):
        data = TomlCodec.parse('title = "demo"\n[server]\nport = 8080\n')
        assert data == {"title": "demo", "server": {"port": 8080}}
        assert isinstance(data["server"]["port"], int)

    def test_datetimes_become_iso_strings(self):
        assert TomlCodec.parse("when = 1979-05-27T07:32:00Z") == {
            "when": "1979-05-27T07:32:00+00:00"
        }

    def test_malformed(self):
        with pytest.raises(FormatError, match="invalid toml"):
            TomlCodec.parse("key = ")

    def test_null_values_are_dropped(self):
        assert TomlCodec.serialize({"a": None, "b": 1}) == "b = 1\n"

    def test_null_inside_array_is_rejected(self):
        with pytest.raises(FormatError, match="cannot contain null"):
            TomlCodec.serialize({"a": [1, None]})

    def test_deep_nesting_is_a_format_error(self):
        with pytest.raises(FormatError, match="invalid toml"):
            TomlCodec.parse("a = " + "[" * 50000 + "]" * 50000)


# ===========================================================================
# TestEnvCodec
# ===========================================================================

class TestEnvCodec:

    def test_split_on_first_equals(self):
        assert EnvCodec.parse("URL=http://x.com?a=1") == {"URL": "http://x.com?a=1"}

    def test_invalid_line(self):
        with pytest.raises(FormatError, match="invalid env line: NO_EQUALS_HERE"):
            EnvCodec.parse("NO_EQUALS_HERE")

    def test_comments_and_blank_lines_skipped(self):
        text = "# database\n\nDB_HOST = localhost \n  # indented comment\nDB_PORT=5432\n"
        assert EnvCodec.parse(text) == {"DB_HOST": "localhost", "DB_PORT": "5432"}

    def test_quotes_are_stripped_once(self):
        data = EnvCodec.parse("A=\"hello world\"\nB='single'\nC=\"'nested'\"")
        assert data == {"A": "hello world", "B": "single", "C": "'nested'"}

    def test_mismatched_quotes_are_kept(self):
        assert EnvCodec.parse("A=\"open") == {"A": '"open'}

    def test_double_quoted_escapes_are_decoded(self):
        assert EnvCodec.parse(r'MSG="say \"hi\"\nbye"') == {"MSG": 'say "hi"\nbye'}

    def test_single_quoted_values_are_literal(self):
        assert EnvCodec.parse(r"MSG='a\nb'") == {"MSG": r"a\nb"}

    def test_empty_value(self):
        assert EnvCodec.parse("EMPTY=") == {"EMPTY": ""}

    def test_serialize_scalars_and_composites(self):
        text = EnvCodec.serialize({
            "NAME": "hello world",
            "PORT": 8080.0,
            "DEBUG": True,
            "MISSING": None,
            "HOSTS": ["a", "b"],
        })
        assert text == 'NAME="hello world"\nPORT=8080\nDEBUG=true\nMISSING=null\nHOSTS="[\\"a\\",\\"b\\"]"'

    def test_serialized_composite_reads_back_as_json_text(self):
        data = EnvCodec.parse(EnvCodec.serialize({"HOSTS": ["a", "b"]}))
        assert data == {"HOSTS": '["a","b"]'}

    @pytest.mark.parametrize("key", ["A=B", "#COMMENTED", " PADDED", "TWO\nLINES", ""])
    def test_keys_that_would_read_back_differently_are_rejected(self, key):
        with pytest.raises(FormatError, match="invalid env key"):
            EnvCodec.serialize({key: "1"})

    def test_converting_an_unrepresentable_key_fails(self):
        with pytest.raises(FormatError, match="invalid env key"):
            ConfigParser.convert_format('{"a=b": 1}', "json", "env")

    @given(
        st.dictionaries(
            keys=st.from_regex(r"[A-Z][A-Z0-9_]{0,15}", fullmatch=True),
            values=st.text(alphabet=st.characters(blacklist_categories=("Cs",)), max_size=40),
            max_size=8,
        )
    )
    def test_round_trip_is_idempotent(self, data):
        assert EnvCodec.parse(EnvCodec.serialize(data)) == data


class TestYamlRoundTrip:

    @given(
        st.dictionaries(
            keys=st.text(alphabet=string.ascii_letters, min_size=1, max_size=10),
            values=st.one_of(
                st.none(),
                st.booleans(),
                st.integers(),
                st.floats(allow_nan=False, allow_infinity=False),
                st.text(alphabet=string.ascii_letters + string.digits + " _-:#'\"", max_size=20),
            ),
            max_size=8,
        )
    )
    def test_parse_serialize_parse(self, data):
        assert YamlCodec.parse(YamlCodec.serialize(data)) == data


_JSON_VALUES = st.recursive(
    st.one_of(
        st.none(),
        st.booleans(),
        st.integers(min_value=-(2**53), max_value=2**53),
        st.floats(allow_nan=False, allow_infinity=False),
        st.text(max_size=20),
    ),
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(st.text(max_size=8), children, max_size=4),
    ),
    max_leaves=12,
)

# TOML has no null, so None appears only as a table value, which is dropped.
_TOML_VALUES = st.recursive(
    st.one_of(
        st.booleans(),
        st.integers(min_value=-(2**63), max_value=2**63 - 1),
        st.floats(allow_nan=False, allow_infinity=False),
        st.text(max_size=20),
    ),
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(st.text(max_size=8), st.one_of(st.none(), children), max_size=4),
    ),
    max_leaves=12,
)


class TestJsonRoundTrip:

    @given(st.dictionaries(st.text(max_size=8), _JSON_VALUES, max_size=6))
    def test_parse_serialize_parse(self, document):
        parsed = JsonCodec.parse(json.dumps(document))
        assert JsonCodec.parse(JsonCodec.serialize(parsed)) == parsed

    def test_integers_stay_floats_across_round_trips(self):
        parsed = JsonCodec.parse('{"port": 8080, "ratio": 0.5}')
        again = JsonCodec.parse(JsonCodec.serialize(parsed))
        assert again == {"port": 8080.0, "ratio": 0.5}
        assert isinstance(again["port"], float)


class TestTomlRoundTrip:

    @given(st.dictionaries(st.text(max_size=8), st.one_of(st.none(), _TOML_VALUES), max_size=6))
    def test_parse_serialize_parse(self, document):
        parsed = TomlCodec.parse(TomlCodec.serialize(document))
        assert TomlCodec.parse(TomlCodec.serialize(parsed)) == parsed

    def test_datetimes_stay_iso_strings(self):
        text = (
            "released = 1979-05-27T07:32:00Z\n"
            "local = 1979-05-27T07:32:00\n"
            "day = 1979-05-27\n"
            "alarm = 07:32:00\n"
        )
        parsed = TomlCodec.parse(text)
        assert parsed == {
            "released": "1979-05-27T07:32:00+00:00",
            "local": "1979-05-27T07:32:00",
            "day": "1979-05-27",
            "alarm": "07:32:00",
        }
        assert TomlCodec.parse(TomlCodec.serialize(parsed)) == parsed

    def test_null_table_values_are_dropped_once(self):
        parsed = TomlCodec.parse(TomlCodec.serialize({"a": None, "t": {"b": None, "c": 1}}))
        assert parsed == {"t": {"c": 1}}
        assert TomlCodec.parse(TomlCodec.serialize(parsed)) == parsed


# ===========================================================================
# TestConfigParser
# ===========================================================================

class TestConfigParser:

    def test_convert_json_to_yaml(self):
        converted = ConfigParser.convert_format('{"key":"value"}', "json", "yaml")
        assert converted == "key: value\n"
        assert ConfigParser.parse_config(converted, ConfigFormat.YAML) == {"key": "value"}

    def test_json_numbers_become_toml_floats(self):
        assert ConfigParser.convert_format('{"n": 42}', "json", "toml") == "n = 42.0\n"

    def test_yaml_to_env_stringifies(self):
        converted = ConfigParser.convert_format("delay: 30\nverbose: false\n", "yaml", "env")
        assert converted == "delay=30\nverbose=false"
        assert ConfigParser.parse_config(converted, "env") == {"delay": "30", "verbose": "false"}

    def test_convert_reports_source_failure(self):
        with pytest.raises(FormatError, match="^failed to parse source format: invalid json"):
            ConfigParser.convert_format("{broken", "json", "yaml")

    def test_unsupported_format(self):
        with pytest.raises(FormatError, match="unsupported format: xml"):
            ConfigParser.parse_config("<a/>", "xml")

    def test_format_names_are_case_insensitive(self):
        assert ConfigParser.parse_config("a: 1", "YAML") == {"a": 1}

    def test_yaml_scalar_detected_but_not_parseable_as_document(self):
        text = "A=1\nB=2"
        fmt = ConfigParser.detect_format(text)
        assert fmt is ConfigFormat.YAML
        with pytest.raises(FormatError, match="must be a mapping"):
            ConfigParser.parse_config(text, fmt)

    def test_validate_config_syntax_only(self):
        assert ConfigParser.validate_config("A=1", "env") == {"A": "1"}

    def test_validate_config_raises_with_all_errors(self):
        with pytest.raises(SchemaViolationError) as exc_info:
            ConfigParser.validate_config(
                "delay: -5\naction: delete\n",
                "yaml",
                schema=REALISTIC_SCHEMA,
                variables=[VariableRule(name="OUT", path="outputDir", required=True)],
            )
        codes = sorted(e["code"] for e in exc_info.value.errors)
        assert codes == ["missing_required", "schema_violation", "schema_violation"]
        assert "outputDir" in str(exc_info.value)


# ===========================================================================
# TestValueModel
# ===========================================================================

class TestValueModel:

    def test_kinds(self):
        assert value_kind("x") is ValueKind.STRING
        assert value_kind(1) is ValueKind.INTEGER
        assert value_kind(1.5) is ValueKind.FLOAT
        assert value_kind(True) is ValueKind.BOOLEAN
        assert value_kind(None) is ValueKind.NULL
        assert value_kind([1]) is ValueKind.ARRAY
        assert value_kind({"a": 1}) is ValueKind.MAPPING

    def test_json_and_yaml_numbers_differ_in_kind(self):
        from_json = ConfigParser.parse_config('{"n": 1}', "json")["n"]
        from_yaml = ConfigParser.parse_config("n: 1", "yaml")["n"]
        assert from_json == from_yaml
        assert value_kind(from_json) is ValueKind.FLOAT
        assert value_kind(from_yaml) is ValueKind.INTEGER

    def test_unsupported_value(self):
        with pytest.raises(FormatError, match="unsupported value type: set"):
            value_kind({1, 2})

    def test_normalize_value(self):
        raw = {"when": datetime.date(2024, 1, 2), 7: (1, 2)}
        assert normalize_value(raw) == {"when": "2024-01-02", "7": [1, 2]}

    def test_normalize_rejects_bytes(self):
        with pytest.raises(FormatError):
            normalize_value({"blob": b"\x00"}, "yaml")

    def test_normalize_rejects_deep_nesting(self):
        nested: list = []
        for _ in range(100_000):
            nested = [nested]
        with pytest.raises(FormatError, match="nesting is too deep"):
            normalize_value({"a": nested}, "yaml")

    def test_normalize_keeps_shared_containers_shared(self):
        shared = [1, 2]
        result = normalize_value({"a": shared, "b": shared})
        assert result["a"] is result["b"]
        assert result["a"] is not shared

    def test_scalar_to_string(self):
        assert scalar_to_string(42.0) == "42"
        assert scalar_to_string(0.5) == "0.5"
        assert scalar_to_string(False) == "false"
        assert scalar_to_string(None) == "null"


# ===========================================================================
# TestContentValidation
# ===========================================================================

class TestContentValidation:

    def _validate(self, data, fmt=ConfigFormat.YAML, schema=None, variables=()):
        return ContentValidationService.validate(
            ContentValidationRequest(data=data, format=fmt, schema=schema, variables=list(variables))
        )

    def test_valid_content_passes(self):
        data = YamlCodec.parse(REALISTIC_YAML)
        result = self._validate(
            data,
            schema=REALISTIC_SCHEMA,
            variables=[
                VariableRule(name="DELAY", path="delay", type="number", required=True),
                VariableRule(name="URL", path="torznab.0.url", validation_rule=r"https?://\S+"),
            ],
        )
        assert result.valid is True
        assert result.errors == []

    def test_schema_violations_are_all_reported(self):
        result = self._validate({"delay": -1}, schema=REALISTIC_SCHEMA)
        assert result.valid is False
        assert [(e["field"], e["code"]) for e in result.errors] == [
            ("$", "schema_violation"),
            ("delay", "schema_violation"),
        ]

    def test_invalid_schema_text(self):
        result = self._validate({"a": 1}, schema="{not json")
        assert result.errors[0]["code"] == "invalid_schema"

    def test_invalid_schema_document(self):
        _, errors = load_schema('{"type": 12}')
        assert errors and errors[0]["code"] == "invalid_schema"

    def test_missing_required_variable(self):
        result = self._validate({}, variables=[VariableRule(name="DELAY", path="delay", required=True)])
        assert result.errors == [{
            "field": "delay",
            "code": "missing_required",
            "message": 'Variable "DELAY" is required but "delay" was not found.',
        }]

    def test_optional_missing_variable_is_fine(self):
        assert self._validate({}, variables=[VariableRule(name="X", path="x")]).valid is True

    def test_type_mismatch(self):
        result = self._validate({"delay": "30"}, variables=[VariableRule(name="D", path="delay", type="number")])
        assert result.errors[0]["code"] == "type_mismatch"

    def test_boolean_is_not_a_number(self):
        result = self._validate({"delay": True}, variables=[VariableRule(name="D", path="delay", type="number")])
        assert result.errors[0]["code"] == "type_mismatch"

    def test_env_skips_type_checks(self):
        result = self._validate(
            {"DELAY": "30"},
            fmt=ConfigFormat.ENV,
            variables=[VariableRule(name="D", path="DELAY", type="number", validation_rule=r"\d+")],
        )
        assert result.valid is True

    def test_rule_violation(self):
        result = self._validate(
            {"torznab": [{"url": "ftp://nope"}]},
            variables=[VariableRule(name="URL", path="torznab.0.url", validation_rule=r"https?://\S+")],
        )
        assert result.errors[0]["code"] == "rule_violation"
        assert result.errors[0]["field"] == "torznab.0.url"

    def test_rule_applies_to_json_text_of_non_strings(self):
        result = self._validate(
            {"delay": 30},
            variables=[VariableRule(name="D", path="delay", type="number", validation_rule=r"\d{1,2}")],
        )
        assert result.valid is True

    def test_invalid_rule(self):
        result = self._validate({"a": "x"}, variables=[VariableRule(name="A", path="a", validation_rule="(")])
        assert result.errors[0]["code"] == "invalid_rule"

    def test_resolve_path_through_lists(self):
        data = {"torznab": [{"url": "u0"}, {"url": "u1"}]}
        assert resolve_path(data, "torznab.1.url") == "u1"
        missing = resolve_path(data, "absent")
        assert resolve_path(data, "torznab.2.url") is missing
        assert resolve_path(data, "torznab.first") is missing
