"""Tests for the search level cascade."""

from unittest.mock import Mock, patch

import pytest

from cve_heuristics.api import CveSearchApiError
from cve_heuristics.models import ComponentRecord, Match, NeedleWithMeta, VendorIdentity
from cve_heuristics.needles import compose
from cve_heuristics.search_levels import (
    CpeSearchLevel,
    GuessingSearchLevel,
    NeedleGeneratorLevel,
    SearchLevels,
    flatten
)

MATCHES = [Match("foo:libfoo", 0), Match("foo_inc:libfoo", 2), Match("fooware:foo", 3)]


@pytest.fixture
def guesser():
    """A guesser returning fixed matches."""
    mock_guesser = Mock()
    mock_guesser.guess_vendor_and_products.return_value = list(MATCHES)
    return mock_guesser


@pytest.fixture
def search_levels(guesser):
    """A cascade whose internal guesser is replaced by the mock."""
    with patch("cve_heuristics.search_levels.CveSearchGuesser", return_value=guesser) as guesser_cls:
        levels = SearchLevels(Mock(), vendor_threshold=1, product_threshold=0, cutoff=6)
    levels.guesser_cls = guesser_cls
    return levels


class TestCpeSearchLevel:
    """Test the level using the recorded CPE."""

    def test_recorded_cpe_is_used_lowercased(self):
        """Test that a well-formed CPE yields exactly one candidate."""
        record = ComponentRecord(name="libfoo", cpe_id="CPE:2.3:A:Foo:LibFoo:1.2")
        assert CpeSearchLevel().apply(record) == [NeedleWithMeta("cpe:2.3:a:foo:libfoo:1.2", "CPE")]

    def test_example_cpe(self):
        """Test the recorded CPE of the documentation example."""
        record = ComponentRecord(name="libfoo", version="1.2", cpe_id="cpe:2.3:a:foo:libfoo:1.2")
        result = CpeSearchLevel().apply(record)
        assert len(result) == 1
        assert result[0].needle == "cpe:2.3:a:foo:libfoo:1.2"
        assert result[0].description == "CPE"

    @pytest.mark.parametrize("cpe_id", [None, "", "cpe:short", "libfoo 1.2 from foo inc"])
    def test_missing_or_malformed_cpe(self, cpe_id):
        """Test that unset or malformed CPEs yield nothing."""
        assert CpeSearchLevel().apply(ComponentRecord(name="libfoo", cpe_id=cpe_id)) == []


class TestGuessingSearchLevel:
    """Test the guessing levels."""

    def test_with_version_requires_version(self, guesser):
        """Test that the versioned level is empty without a version."""
        level = GuessingSearchLevel(guesser, use_version=True)
        assert level.apply(ComponentRecord(name="libfoo")) == []
        guesser.guess_vendor_and_products.assert_not_called()

    def test_empty_version_is_still_a_version(self, guesser):
        """Test that an empty version string counts as set."""
        level = GuessingSearchLevel(guesser, use_version=True)
        result = level.apply(ComponentRecord(name="libfoo", version=""))
        assert result[0].needle == "cpe:2.3:.:foo:libfoo:.*"

    def test_with_version_needles(self, guesser):
        """Test needles and descriptions of the versioned level."""
        level = GuessingSearchLevel(guesser, use_version=True)
        result = level.apply(ComponentRecord(name="libfoo", version="1.2"))

        assert result == [
            NeedleWithMeta("cpe:2.3:.:foo:libfoo:1.2.*", "heuristic (dist. 00)"),
            NeedleWithMeta("cpe:2.3:.:foo_inc:libfoo:1.2.*", "heuristic (dist. 02)"),
            NeedleWithMeta("cpe:2.3:.:fooware:foo:1.2.*", "heuristic (dist. 03)"),
        ]

    def test_without_version_needles(self, guesser):
        """Test needles and descriptions of the version-agnostic level."""
        level = GuessingSearchLevel(guesser, use_version=False)
        result = level.apply(ComponentRecord(name="libfoo", version="1.2"))

        assert [n.needle for n in result] == [
            "cpe:2.3:.:foo:libfoo:.*",
            "cpe:2.3:.:foo_inc:libfoo:.*",
            "cpe:2.3:.:fooware:foo:.*",
        ]
        assert [n.description for n in result] == [
            "heuristic (dist. 10)",
            "heuristic (dist. 12)",
            "heuristic (dist. 13)",
        ]

    def test_without_version_runs_for_unversioned_component(self, guesser):
        """Test that the version-agnostic level does not need a version."""
        level = GuessingSearchLevel(guesser, use_version=False)
        assert len(level.apply(ComponentRecord(name="libfoo"))) == len(MATCHES)

    def test_vendor_haystack_from_short_and_full_name(self, guesser):
        """Test that both vendor names make up the vendor haystack."""
        level = GuessingSearchLevel(guesser, use_version=False)
        level.apply(ComponentRecord(name="libfoo", vendor=VendorIdentity("Foo", "Foo Incorporated")))
        guesser.guess_vendor_and_products.assert_called_once_with("Foo Foo Incorporated", "libfoo")

    def test_vendor_haystack_defaults_missing_names(self, guesser):
        """Test that an unset vendor name becomes an empty string."""
        level = GuessingSearchLevel(guesser, use_version=True)
        level.apply(ComponentRecord(name="libfoo", version="1.2", vendor=VendorIdentity(short_name="Foo Inc")))
        guesser.guess_vendor_and_products.assert_called_once_with("Foo Inc ", "libfoo")

    def test_product_only_without_vendor_names(self, guesser):
        """Test that the name alone is used when no vendor name is set."""
        level = GuessingSearchLevel(guesser, use_version=False)
        level.apply(ComponentRecord(name="libfoo", vendor=VendorIdentity()))
        guesser.guess_vendor_and_products.assert_called_once_with("libfoo")

    def test_token_kept_verbatim(self, guesser):
        """Test that guessed tokens are not altered."""
        guesser.guess_vendor_and_products.return_value = [Match("a.b+c:d[e]", 1)]
        level = GuessingSearchLevel(guesser, use_version=False)
        assert level.apply(ComponentRecord(name="x"))[0].needle == "cpe:2.3:.:a.b+c:d[e]:.*"

    def test_provider_failure_propagates(self, guesser):
        """Test that provider failures are not swallowed."""
        guesser.guess_vendor_and_products.side_effect = CveSearchApiError("unreachable")
        level = GuessingSearchLevel(guesser, use_version=False)
        with pytest.raises(CveSearchApiError, match="unreachable"):
            level.apply(ComponentRecord(name="libfoo"))


class TestNeedleGeneratorLevel:
    """Test levels built from needle generators."""

    def test_composed_generator(self):
        """Test a vendor and product level built with compose."""
        generator = compose(lambda r: "cpe:2.3:.:", lambda r: r.vendor.short_name, lambda r: r.name)
        level = NeedleGeneratorLevel(generator, "vendor and product")
        record = ComponentRecord(name="Lib Foo", vendor=VendorIdentity(short_name="Foo"))

        assert level.apply(record) == [NeedleWithMeta("cpe:2.3:.:.*foo.*lib.*foo", "vendor and product")]

    def test_empty_needle_is_dropped(self):
        """Test that an empty generator output yields nothing."""
        assert NeedleGeneratorLevel(lambda r: "", "empty").apply(ComponentRecord(name="x")) == []


class TestSearchLevels:
    """Test the complete cascade."""

    def test_guesser_configuration(self, search_levels):
        """Test that the guesser gets the tuning parameters."""
        _, kwargs = search_levels.guesser_cls.call_args
        assert kwargs == {"vendor_threshold": 1, "product_threshold": 0, "cutoff": 6}

    def test_three_levels_in_order(self, search_levels):
        """Test the built-in levels and their order."""
        assert len(search_levels.levels) == 3
        assert isinstance(search_levels.levels[0], CpeSearchLevel)
        assert search_levels.levels[1].use_version is True
        assert search_levels.levels[2].use_version is False

    def test_example_component(self, search_levels, guesser):
        """Test the cascade for a versioned component without CPE."""
        record = ComponentRecord(name="libfoo", version="1.2", vendor=VendorIdentity(short_name="Foo Inc"))
        result = search_levels.apply(record)

        assert len(result) == 3
        assert result[0] == []
        assert [n.needle for n in result[1]] == [f"cpe:2.3:.:{m.needle}:1.2.*" for m in MATCHES]
        assert [n.needle for n in result[2]] == [f"cpe:2.3:.:{m.needle}:.*" for m in MATCHES]
        assert all(n.description.startswith("heuristic (dist. 1") for n in result[2])
        assert guesser.guess_vendor_and_products.call_count == 2
        for call in guesser.guess_vendor_and_products.call_args_list:
            assert call.args == ("Foo Inc ", "libfoo")

    def test_no_short_circuit(self, search_levels, guesser):
        """Test that the guessing levels run even when the CPE level has a hit."""
        record = ComponentRecord(name="libfoo", version="1.2", cpe_id="cpe:2.3:a:foo:libfoo:1.2")
        result = search_levels.apply(record)

        assert len(result[0]) == 1
        assert len(result[1]) == len(MATCHES)
        assert len(result[2]) == len(MATCHES)

    def test_flatten_keeps_level_order(self, search_levels):
        """Test that flattening concatenates without deduplication."""
        record = ComponentRecord(name="libfoo", version="1.2", cpe_id="cpe:2.3:a:foo:libfoo:1.2")
        flat = flatten(search_levels.apply(record))

        assert len(flat) == 1 + 2 * len(MATCHES)
        assert flat[0].description == "CPE"
        assert flat[1].needle == "cpe:2.3:.:foo:libfoo:1.2.*"
        assert flat[-1].needle == "cpe:2.3:.:fooware:foo:.*"

    def test_apply_is_idempotent(self, search_levels):
        """Test that repeated calls give identical output."""
        record = ComponentRecord(name="libfoo", version="1.2")
        assert search_levels.apply(record) == search_levels.apply(record)

    def test_failure_on_last_level_fails_everything(self, search_levels, guesser):
        """Test that a failing third level makes the whole call fail."""
        guesser.guess_vendor_and_products.side_effect = [list(MATCHES), CveSearchApiError("down")]
        record = ComponentRecord(name="libfoo", version="1.2")

        with pytest.raises(CveSearchApiError, match="down"):
            search_levels.apply(record)
        assert guesser.guess_vendor_and_products.call_count == 2

    def test_failure_skips_later_levels(self, search_levels, guesser):
        """Test that levels after a failing one are not evaluated."""
        guesser.guess_vendor_and_products.side_effect = CveSearchApiError("down")

        with pytest.raises(CveSearchApiError):
            search_levels.apply(ComponentRecord(name="libfoo", version="1.2"))
        assert guesser.guess_vendor_and_products.call_count == 1

    def test_extra_levels_run_last(self, guesser):
        """Test that additional levels are appended after the built-in ones."""
        extra = NeedleGeneratorLevel(lambda r: f"cpe:2.3:.:.*{r.name}", "name only")
        with patch("cve_heuristics.search_levels.CveSearchGuesser", return_value=guesser):
            levels = SearchLevels(Mock(), 1, 0, 6, extra_levels=[extra])

        result = levels.apply(ComponentRecord(name="libfoo"))
        assert len(result) == 4
        assert result[3] == [NeedleWithMeta("cpe:2.3:.:.*libfoo", "name only")]
