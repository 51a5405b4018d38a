from __future__ import annotations

from dataclasses import dataclass, field

from docmirror.models import RunCounters


@dataclass(slots=True)
class LibraryReport:
    job: str
    title: str
    item_count: int = 0
    folders_created: int = 0
    excluded: int = 0
    counters: RunCounters = field(default_factory=RunCounters)
    error: str | None = None


@dataclass(slots=True)
class RunReport:
    libraries: list[LibraryReport] = field(default_factory=list)
    counters: RunCounters = field(default_factory=RunCounters)
    partial_failures: bool = False

    def absorb(self, library: LibraryReport) -> None:
        self.libraries.append(library)
        self.counters.merge(library.counters)
        if library.error:
            self.partial_failures = True

    @property
    def processed_libraries(self) -> int:
        return sum(1 for library in self.libraries if library.error is None)


def render_summary(report: RunReport) -> str:
    lines = [
        "Mirror summary",
        f"  Libraries processed: {report.processed_libraries} of {len(report.libraries)}",
    ]
    for library in report.libraries:
        status = f"FAILED ({library.error})" if library.error else f"{library.item_count} item(s)"
        lines.append(f"    [{library.job}] {library.title}: {status}")
    counters = report.counters
    lines.extend(
        [
            f"  Copied:                   {counters.copied}",
            f"  Copied (updated):         {counters.copied_updated}",
            f"  Skipped (exists):         {counters.skipped_exists}",
            f"  Skipped (path too long):  {counters.skipped_path_too_long}",
        ]
    )
    return "\n".join(lines)
