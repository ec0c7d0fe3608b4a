"""
Tests for registry/formats.py - Registry Formats.

Covers:
- JSON with INI fallback
- INI sections, array values, value parsing and the parse cache
- XML typed nodes
- YAML
- Format lookup and registration
"""
import json

import pytest

from core.errors import RegistryFormatError
from registry import (
    Format,
    IniFormat,
    JsonFormat,
    Registry,
    XmlFormat,
    YamlFormat,
    available_formats,
    get_format,
    register_format,
)


# =============================================================================
# JSON
# =============================================================================

class TestJsonFormat:
    """Tests for JsonFormat."""

    def test_dump(self):
        """Test dumping with options."""
        fmt = JsonFormat()

        assert fmt.dump({"b": 1, "a": 2}) == '{"b": 1, "a": 2}'
        assert fmt.dump({"b": 1, "a": 2}, sort_keys=True) == '{"a": 2, "b": 1}'
        assert fmt.dump({"a": 1}, indent=2) == '{\n  "a": 1\n}'

    def test_dump_unicode(self):
        """Test non-ASCII output can be kept."""
        assert JsonFormat().dump({"a": "ł"}, ensure_ascii=False) == '{"a": "ł"}'

    def test_load(self):
        """Test loading objects."""
        assert JsonFormat().load('{"a": {"b": [1, 2]}}') == {"a": {"b": [1, 2]}}

    def test_load_empty(self):
        """Test blank input loads as an empty dict."""
        assert JsonFormat().load("   ") == {}

    def test_load_top_level_list(self):
        """Test top-level arrays are keyed by index."""
        assert JsonFormat().load('["x", "y"]') == {"0": "x", "1": "y"}

    def test_load_top_level_scalar_raises(self):
        """Test top-level scalars are rejected."""
        with pytest.raises(RegistryFormatError):
            JsonFormat().load('"text"')

    def test_ini_fallback(self):
        """Test non-JSON key=value content is read as INI."""
        assert JsonFormat().load("a=1\nb=\"two\"") == {"a": 1, "b": "two"}

    def test_invalid_object_raises(self):
        """Test broken JSON objects raise with the format name."""
        with pytest.raises(RegistryFormatError) as exc_info:
            JsonFormat().load('{"a": }')

        assert exc_info.value.format_name == "json"
        assert "Error decoding JSON data" in exc_info.value.message


# =============================================================================
# INI
# =============================================================================

class TestIniDump:
    """Tests for IniFormat.dump."""

    def test_scalars(self):
        """Test scalar values are rendered."""
        text = IniFormat().dump({"a": 1, "b": 1.5, "c": True, "d": False, "e": "text", "f": None})

        assert text == 'a=1\nb=1.5\nc=true\nd=false\ne="text"\nf='

    def test_sections(self):
        """Test dicts become sections separated by blank lines."""
        text = IniFormat().dump({"s1": {"a": 1}, "s2": {"b": "x"}})

        assert text == '[s1]\na=1\n\n[s2]\nb="x"'

    def test_globals_before_sections(self):
        """Test top-level values come before every section."""
        text = IniFormat().dump({"s1": {"a": 1}, "g": 2})

        assert text.startswith("g=2\n")
        assert "[s1]\na=1" in text

    def test_escapes(self):
        """Test newlines and backslashes are escaped inside quotes."""
        assert IniFormat().dump({"a": "x\ny\\z"}) == 'a="x\\ny\\\\z"'

    def test_array_values(self):
        """Test lists and dicts become array keys when supported."""
        text = IniFormat().dump(
            {"list": [1, 2], "s": {"map": {"x": "a"}}},
            support_array_values=True,
        )

        assert "list[]=1\nlist[]=2" in text
        assert 'map[x]="a"' in text

    def test_arrays_unsupported(self):
        """Test lists are rendered empty without array support."""
        assert IniFormat().dump({"list": [1, 2]}) == "list="


class TestIniLoad:
    """Tests for IniFormat.load."""

    def test_values(self):
        """Test value parsing."""
        text = "\n".join([
            "int=42",
            "neg=-3",
            "float=1.5",
            "exp=1e3",
            "yes=true",
            "no=false",
            'quoted="a \\"b\\" \\n c"',
            "bare=hello",
            "word=yes",
        ])

        assert IniFormat().load(text) == {
            "int": 42,
            "neg": -3,
            "float": 1.5,
            "exp": 1000,
            "yes": True,
            "no": False,
            "quoted": 'a "b" \n c',
            "bare": "hello",
            "word": "yes",
        }

    def test_boolean_words(self):
        """Test yes/no parse as booleans when enabled."""
        result = IniFormat().load("a=yes\nb=No", parse_boolean_words=True)

        assert result == {"a": True, "b": False}

    def test_skipped_lines(self):
        """Test comments, blank lines and malformed lines are skipped."""
        text = "; comment\n\n=value\nno equals\nbad key=1\nok=1"

        assert IniFormat().load(text) == {"ok": 1}

    def test_sections(self):
        """Test sections become nested dicts when processed."""
        text = "top=1\n[s1]\na=1\n[s2]\nb=\"x\""

        assert IniFormat().load(text, process_sections=True) == {
            "top": 1,
            "s1": {"a": 1},
            "s2": {"b": "x"},
        }
        assert IniFormat().load(text) == {"top": 1, "a": 1, "b": "x"}

    def test_array_values(self):
        """Test array keys build lists and dicts."""
        text = "list[]=1\nlist[]=2\nmap[x]=a\nmap[y]=b"

        assert IniFormat().load(text, support_array_values=True) == {
            "list": [1, 2],
            "map": {"x": "a", "y": "b"},
        }
        assert IniFormat().load(text) == {}

    def test_mixed_array_keys(self):
        """Test named keys after indexed ones keep earlier entries."""
        result = IniFormat().load("a[]=1\na[name]=2", support_array_values=True)

        assert result == {"a": {"0": 1, "name": 2}}

    def test_empty(self):
        """Test empty input."""
        assert IniFormat().load("") == {}

    def test_cache_returns_copies(self):
        """Test cached results cannot be mutated through the return value."""
        text = "[s]\na=1"
        first = IniFormat().load(text, process_sections=True)
        first["s"]["a"] = 99

        assert IniFormat().load(text, process_sections=True) == {"s": {"a": 1}}

    def test_cache_keyed_by_options(self):
        """Test the same text parses differently under other options."""
        text = "cache_key_test=yes"

        assert IniFormat().load(text) == {"cache_key_test": "yes"}
        assert IniFormat().load(text, parse_boolean_words=True) == {"cache_key_test": True}

    def test_cache_is_bounded(self):
        """Test the parse cache evicts old documents."""
        for index in range(300):
            IniFormat().load(f"bounded_{index}=1")

        info = IniFormat._parse.cache_info()
        assert info.currsize <= info.maxsize

    def test_out_of_range_exponent(self):
        """Test numbers beyond the float range are kept as written."""
        assert IniFormat().load("value=1e400\nsmall=-2.5e999\nok=1e3") == {
            "value": "1e400",
            "small": "-2.5e999",
            "ok": 1000,
        }

    def test_out_of_range_exponent_through_json_fallback(self):
        """Test the JSON to INI fallback handles huge exponents."""
        assert Registry().load_string("limit=2e999").get("limit") == "2e999"

    def test_round_trip(self):
        """Test sectioned data survives dump and load."""
        data = {"g": "x\\y\nz", "db": {"host": "localhost", "port": 5432, "debug": False}}
        fmt = IniFormat()

        assert fmt.load(fmt.dump(data), process_sections=True) == data


# =============================================================================
# XML
# =============================================================================

class TestXmlFormat:
    """Tests for XmlFormat."""

    @pytest.fixture
    def data(self):
        """Data covering every node type."""
        return {
            "count": 1,
            "ratio": 1.5,
            "on": True,
            "off": False,
            "nothing": None,
            "name": "Tessera",
            "items": [1, "x"],
            "nested": {"key": "value"},
        }

    def test_dump(self, data):
        """Test nodes carry names and types."""
        text = XmlFormat().dump(data)

        assert text.startswith('<?xml version="1.0"?>\n<registry>')
        assert '<node name="count" type="integer">1</node>' in text
        assert '<node name="ratio" type="double">1.5</node>' in text
        assert '<node name="on" type="boolean">1</node>' in text
        assert '<node name="name" type="string">Tessera</node>' in text
        assert '<node name="items" type="array">' in text
        assert '<node name="nested" type="object">' in text
        assert 'type="NULL"' in text

    def test_round_trip(self, data):
        """Test typed nodes load back to the same values."""
        fmt = XmlFormat()

        assert fmt.load(fmt.dump(data)) == data

    def test_custom_names(self):
        """Test the root and node element names can be changed."""
        text = XmlFormat().dump({"a": 1}, name="config", node_name="entry")

        assert '<config><entry name="a" type="integer">1</entry></config>' in text

    def test_load_escaped_text(self):
        """Test markup characters survive."""
        fmt = XmlFormat()

        assert fmt.load(fmt.dump({"a": "<b> & 'c'"})) == {"a": "<b> & 'c'"}

    def test_load_untyped_nodes(self):
        """Test nodes without a type are read as objects."""
        text = '<registry><node name="a"><node name="b" type="string">x</node></node></registry>'

        assert XmlFormat().load(text) == {"a": {"b": "x"}}

    def test_load_empty(self):
        """Test blank input."""
        assert XmlFormat().load("") == {}

    def test_malformed_xml(self):
        """Test parse errors raise."""
        with pytest.raises(RegistryFormatError):
            XmlFormat().load("<registry><node>")

    def test_invalid_integer(self):
        """Test badly typed values raise."""
        with pytest.raises(RegistryFormatError):
            XmlFormat().load('<registry><node name="a" type="integer">x</node></registry>')


# =============================================================================
# YAML
# =============================================================================

class TestYamlFormat:
    """Tests for YamlFormat."""

    def test_round_trip(self, sample_registry_data):
        """Test nested data survives dump and load."""
        fmt = YamlFormat()

        assert fmt.load(fmt.dump(sample_registry_data)) == sample_registry_data

    def test_dump_keeps_order(self):
        """Test keys are not sorted by default."""
        assert YamlFormat().dump({"b": 1, "a": 2}) == "b: 1\na: 2\n"

    def test_load_list(self):
        """Test top-level sequences are keyed by index."""
        assert YamlFormat().load("- a\n- b") == {"0": "a", "1": "b"}

    def test_load_empty(self):
        """Test blank and null documents."""
        assert YamlFormat().load("") == {}
        assert YamlFormat().load("~") == {}

    def test_load_scalar_raises(self):
        """Test top-level scalars are rejected."""
        with pytest.raises(RegistryFormatError):
            YamlFormat().load("just text")

    def test_invalid_yaml(self):
        """Test parse errors raise."""
        with pytest.raises(RegistryFormatError):
            YamlFormat().load("a: [1, 2")


# =============================================================================
# LOOKUP
# =============================================================================

class UpperJsonFormat(Format):
    """JSON with upper-cased string values, for registration tests."""

    name = "upper"

    def dump(self, data, **options):
        return json.dumps({key: str(value).upper() for key, value in data.items()})

    def load(self, text, **options):
        return json.loads(text)


class TestFormatLookup:
    """Tests for get_format and register_format."""

    @pytest.mark.parametrize("name,expected", [
        ("json", JsonFormat),
        ("JSON", JsonFormat),
        ("ini", IniFormat),
        ("xml", XmlFormat),
        ("yaml", YamlFormat),
        ("yml", YamlFormat),
    ])
    def test_get_format(self, name, expected):
        """Test formats are found case-insensitively."""
        assert isinstance(get_format(name), expected)

    def test_unknown_format(self):
        """Test unknown formats raise with suggestions."""
        with pytest.raises(RegistryFormatError) as exc_info:
            get_format("php")

        assert exc_info.value.format_name == "php"
        assert exc_info.value.suggestions

    def test_available_formats(self):
        """Test the built-in formats are listed."""
        assert {"ini", "json", "xml", "yaml", "yml"} <= set(available_formats())

    def test_register_format(self):
        """Test registered formats are usable by registries."""
        register_format("upper", UpperJsonFormat)

        assert Registry({"a": "x"}).to_string("upper") == '{"a": "X"}'
