"""
Example: Harvest a directory of Emacs Lisp packages into JSON records.

Usage:
    python examples/harvest_to_catalog.py ~/.emacs.d/elpa
"""

import asyncio
import sys
from pathlib import Path

from elisp_harvester import PackageHarvester
from elisp_harvester.exporters.json_export import JSONExporter


async def main(root: Path):
    # Configure JSON exporter; its output doubles as the previous snapshot
    output_dir = Path("./catalog")
    exporter = JSONExporter(output_dir=output_dir)

    # Features built into Emacs resolve to the "emacs" package
    harvester = PackageHarvester(
        exporters=[exporter],
        previous_dir=output_dir,
        features_table={"cl-lib": "emacs", "subr-x": "emacs", "seq": "emacs"},
    )

    await harvester.run(roots=[root])

    print(f"\n✅ Records exported to: {output_dir.absolute()}")


if __name__ == "__main__":
    asyncio.run(main(Path(sys.argv[1] if len(sys.argv) > 1 else ".")))
