"""Tests for the PackageMetadata model, record read-back and the fill-in merge."""

from datetime import date

import pytest

from elisp_harvester.models.package import RECORD_SCHEMA_VERSION, PackageMetadata, Person, fill_in


@pytest.fixture
def sample_package():
    return PackageMetadata(
        name="frob",
        version=(1, 2, -4),
        version_raw="1.2alpha",
        summary="Frobnicate the bar",
        created=date(2020, 5, 1),
        license="GPL-3",
        authors=[Person("Jane Doe", "jane@example.com"), Person(None, "john@example.com")],
        provides=["frob", "frob-util"],
        requires_hard=[(None, ["cl-lib"]), ("emacs", ["seq"])],
        keywords=["tools"],
    )


# ═══════════════════════════════════════════
# Serialization
# ═══════════════════════════════════════════


class TestPackageMetadata:
    def test_maintainer_defaults_to_first_author(self, sample_package):
        assert sample_package.maintainer == Person("Jane Doe", "jane@example.com")

    def test_to_dict_omits_absent_fields(self, sample_package):
        d = sample_package.to_dict()
        assert d["name"] == "frob"
        assert d["version"] == [1, 2, -4]
        assert d["created"] == "2020-05-01"
        assert d["requires_hard"] == [[None, ["cl-lib"]], ["emacs", ["seq"]]]
        assert d["schema_version"] == RECORD_SCHEMA_VERSION
        for absent in ("updated", "homepage", "wikipage", "commentary", "requires_soft"):
            assert absent not in d
        assert "" not in d.values()

    def test_from_dict(self, sample_package):
        pkg = PackageMetadata.from_dict(sample_package.to_dict())
        assert pkg == sample_package

    def test_from_pairs_ignores_unknown_fields(self):
        pkg = PackageMetadata.from_pairs([("name", "frob"), ("color", "blue"), ("license", "MIT")])
        assert pkg.name == "frob"
        assert pkg.license == "MIT"
        assert pkg.version is None

    def test_from_pairs_missing_fields_absent(self):
        pkg = PackageMetadata.from_pairs([("name", "frob")])
        assert pkg.to_dict() == {"name": "frob", "schema_version": RECORD_SCHEMA_VERSION}

    def test_from_pairs_version_string(self):
        pkg = PackageMetadata.from_pairs([("name", "frob"), ("version", "1.0_beta")])
        assert pkg.version == (1, 0, -3)

    def test_from_pairs_malformed_date(self):
        pkg = PackageMetadata.from_pairs([("name", "frob"), ("created", "yesterday")])
        assert pkg.created is None

    def test_from_pairs_malformed_version(self):
        pkg = PackageMetadata.from_pairs([("name", "frob"), ("version", "1.0-1"), ("license", "MIT")])
        assert pkg.version is None
        assert pkg.license == "MIT"

    def test_from_pairs_malformed_requirements(self):
        pkg = PackageMetadata.from_pairs(
            [("name", "frob"), ("requires_hard", ["cl-lib"]), ("requires_soft", 3), ("keywords", ["tools"])]
        )
        assert pkg.requires_hard == []
        assert pkg.requires_soft == []
        assert pkg.keywords == ["tools"]

    def test_from_pairs_sorts_feature_lists(self):
        pkg = PackageMetadata.from_pairs(
            [("name", "x"), ("provides", ["b", "a", "b"]), ("requires_soft", [[None, ["z", "y", "z"]]])]
        )
        assert pkg.provides == ["a", "b"]
        assert pkg.requires_soft == [(None, ["y", "z"])]


# ═══════════════════════════════════════════
# Fill-in Merge
# ═══════════════════════════════════════════


class TestFillIn:
    def test_no_previous(self, sample_package):
        assert fill_in(sample_package, None) is sample_package

    def test_new_values_win(self, sample_package):
        new = PackageMetadata(name="frob", license="MIT", keywords=["lisp"])
        merged = fill_in(new, sample_package)
        assert merged.license == "MIT"
        assert merged.keywords == ["lisp"]

    def test_absent_values_kept(self, sample_package):
        merged = fill_in(PackageMetadata(name="frob"), sample_package)
        assert merged.version == (1, 2, -4)
        assert merged.version_raw == "1.2alpha"
        assert merged.summary == "Frobnicate the bar"
        assert merged.authors == sample_package.authors
        assert merged.maintainer == sample_package.maintainer
        assert merged.requires_hard == sample_package.requires_hard

    def test_unparsed_version_keeps_previous_tuple(self, sample_package):
        merged = fill_in(PackageMetadata(name="frob", version_raw="latest"), sample_package)
        assert merged.version == (1, 2, -4)
        assert merged.version_raw == "latest"

    def test_new_authors_redefine_maintainer(self, sample_package):
        new = PackageMetadata(name="frob", authors=[Person("New Person", None)])
        merged = fill_in(new, sample_package)
        assert merged.maintainer == Person("New Person", None)
