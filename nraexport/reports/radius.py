"""Sample radius parsing from result-file names."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from ..errors import ReportError

_LEADING_NUMBER = re.compile(r"\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))")


@dataclass(frozen=True)
class RadiusParser:
    """Read the number following a marker token in a file name.

    ``r-05_FeW_Si-1_4MeV.xnra`` with marker ``r-`` and terminator ``_FeW``
    yields ``5.0``. The remainder is cut at the earliest terminator found.
    """

    markers: Sequence[str] = field(default_factory=lambda: ("r-",))
    terminators: Sequence[str] = field(default_factory=lambda: ("_p-", "_FeW", "-FeW"))

    def parse(self, path: str | Path) -> float:
        name = Path(path).name
        for marker in self.markers:
            head, sep, remainder = name.partition(marker)
            if not sep:
                continue
            cut = len(remainder)
            for terminator in self.terminators:
                pos = remainder.find(terminator)
                if pos != -1:
                    cut = min(cut, pos)
            match = _LEADING_NUMBER.match(remainder[:cut])
            if match:
                return float(match.group(1))
        raise ReportError(f"No radius found in file name '{name}' (markers: {list(self.markers)}).")
