"""
Build results: one immutable record per (language, format) attempt and
the report that aggregates them for a whole run.
"""

import json
import os
from dataclasses import asdict, dataclass, field


SUCCESS = "success"
FAILED = "failed"


@dataclass(frozen=True)
class BuildResult:
    language: str
    format: str
    status: str
    output_path: str = None
    command: str = ""
    strategy: str = ""
    fallback: bool = False
    diagnostic: str = ""

    @property
    def ok(self):
        return self.status == SUCCESS


@dataclass
class BuildReport:
    results: list = field(default_factory=list)

    def add(self, result):
        self.results.append(result)

    @property
    def succeeded(self):
        return [r for r in self.results if r.ok]

    @property
    def failed(self):
        return [r for r in self.results if not r.ok]

    @property
    def exit_code(self):
        """0 when at least one artifact was produced."""
        return 0 if self.succeeded else 1

    def to_dict(self):
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "results": [asdict(r) for r in self.results],
        }

    def write_json(self, path):
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path

    def summary(self):
        """Print one line per result and a closing tally."""
        print(f"\n{'─' * 60}")
        for r in self.results:
            mark = "✓" if r.ok else "✗"
            note = " (fallback)" if r.fallback else ""
            if r.ok:
                target = r.output_path
            else:
                target = (r.diagnostic.splitlines() or ["failed"])[0]
            print(f"  {mark} {r.language:<6} {r.format:<5} {target}{note}")
        print(f"{'─' * 60}")
        if self.failed:
            failed = ", ".join(f"{r.language}/{r.format}" for r in self.failed)
            print(f"  Done with errors: {failed} failed")
        else:
            print(f"  Done. {len(self.results)} artifact(s) built successfully.")
