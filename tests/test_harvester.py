"""Tests for the catalog harvester."""

import json

import pytest

from elisp_harvester.core.harvester import PackageHarvester
from elisp_harvester.core.sources import Directory, SingleFile
from elisp_harvester.exporters.json_export import JSONExporter


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


@pytest.fixture
def tree(tmp_path):
    root = tmp_path / "packages"
    write(root / "alpha" / "alpha.el", ";; Version: 1.0\n(require 'beta-core)\n(require 'cl-lib)\n(provide 'alpha)\n")
    write(root / "beta" / "beta.el", ";; Version: 2.0\n(provide 'beta)\n")
    write(root / "beta" / "beta-core.el", "(provide 'beta-core)\n")
    write(root / "gamma.el", ";; Version: 0.1\n(provide 'gamma)\n")
    write(root / "empty" / "README", "nothing to see\n")
    write(root / ".git" / "config.el", "(provide 'git)\n")
    return root


# ═══════════════════════════════════════════
# Discovery
# ═══════════════════════════════════════════


class TestDiscovery:
    def test_discover_packages(self, tree):
        harvester = PackageHarvester()
        sources = harvester.discover_packages([tree])
        assert sources == [
            Directory(tree / "alpha"),
            Directory(tree / "beta"),
            SingleFile(tree / "gamma.el"),
        ]

    def test_limit(self, tree):
        assert len(PackageHarvester().discover_packages([tree], limit=2)) == 2

    def test_missing_root(self, tmp_path):
        assert PackageHarvester().discover_packages([tmp_path / "nope"]) == []

    def test_features_table(self, tree):
        harvester = PackageHarvester(features_table={"cl-lib": "emacs"})
        table = harvester.build_features_table(harvester.discover_packages([tree]))
        assert table == {
            "cl-lib": "emacs",
            "alpha": "alpha",
            "beta": "beta",
            "beta-core": "beta",
            "gamma": "gamma",
        }


# ═══════════════════════════════════════════
# Run
# ═══════════════════════════════════════════


class TestRun:
    @pytest.mark.asyncio
    async def test_run_resolves_across_packages(self, tree, tmp_path):
        out = tmp_path / "catalog"
        harvester = PackageHarvester(exporters=[JSONExporter(out)], previous_dir=out)
        records = await harvester.run([tree])

        assert [record.name for record in records] == ["alpha", "beta", "gamma"]
        alpha = records[0]
        assert alpha.requires_hard == [(None, ["cl-lib"]), ("beta", ["beta-core"])]
        assert harvester.missing == ["cl-lib"]
        assert harvester.stats["extracted"] == 3
        assert harvester.stats["failed"] == 0

        data = json.loads((out / "beta.json").read_text())
        assert data["provides"] == ["beta", "beta-core"]

    @pytest.mark.asyncio
    async def test_empty_root(self, tmp_path):
        harvester = PackageHarvester()
        assert await harvester.run([tmp_path]) == []

    @pytest.mark.asyncio
    async def test_failures_counted(self, tmp_path):
        root = tmp_path / "packages"
        write(root / "ambiguous" / "one.el", "")
        write(root / "ambiguous" / "two.el", "")
        write(root / "fine.el", "(provide 'fine)\n")

        harvester = PackageHarvester()
        records = await harvester.run([root])
        assert [record.name for record in records] == ["fine"]
        assert harvester.stats["failed"] == 1

    @pytest.mark.asyncio
    async def test_incremental_fill_in(self, tree, tmp_path):
        out = tmp_path / "catalog"
        write(
            out / "gamma.json",
            json.dumps({"name": "gamma", "license": "MIT", "homepage": "https://example.com/gamma"}),
        )
        harvester = PackageHarvester(exporters=[JSONExporter(out)], previous_dir=out)
        records = await harvester.run([tree])

        gamma = records[-1]
        assert gamma.version == (0, 1)
        assert gamma.license == "MIT"
        assert gamma.homepage == "https://example.com/gamma"
        assert harvester.stats["incremental"] == 1

    @pytest.mark.asyncio
    async def test_no_resume(self, tree, tmp_path):
        out = tmp_path / "catalog"
        write(out / "gamma.json", json.dumps({"name": "gamma", "license": "MIT"}))
        harvester = PackageHarvester(previous_dir=out)
        records = await harvester.run([tree], resume=False)

        assert records[-1].license is None
        assert harvester.stats["incremental"] == 0
