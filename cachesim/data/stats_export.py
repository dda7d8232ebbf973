"""Statistics and exporter.

`LevelStats` holds the counters of one cache level; the hierarchy owns one
per level. The exporters write a {level name: LevelStats} mapping to CSV,
JSON or a miss-rate chart.
"""
import csv
import json
from dataclasses import dataclass, fields
from typing import Dict, Mapping, Optional

from cachesim.core.cache import MissKind

COUNTERS = (
    "reads",
    "words_read",
    "writes",
    "words_written",
    "compulsory_reads",
    "conflict_reads",
    "capacity_reads",
    "compulsory_writes",
    "conflict_writes",
    "capacity_writes",
)


def _rate(misses: int, attempts: int) -> float:
    return (misses / attempts * 100) if attempts else 0.0


@dataclass
class LevelStats:
    """Per-level, per-direction counters.

    `words_read` / `words_written` count words moved between this level and
    the next one (or memory). Rates are percentages.
    """

    name: str = ""
    instruction: bool = False
    reads: int = 0
    words_read: int = 0
    writes: int = 0
    words_written: int = 0
    compulsory_reads: int = 0
    conflict_reads: int = 0
    capacity_reads: int = 0
    compulsory_writes: int = 0
    conflict_writes: int = 0
    capacity_writes: int = 0

    def reset(self):
        # counters start from zero
        for name in COUNTERS:
            setattr(self, name, 0)

    def record_read_miss(self, kind: MissKind):
        setattr(self, f"{kind.value}_reads", getattr(self, f"{kind.value}_reads") + 1)

    def record_write_miss(self, kind: MissKind):
        setattr(self, f"{kind.value}_writes", getattr(self, f"{kind.value}_writes") + 1)

    @property
    def total_read_misses(self) -> int:
        return self.compulsory_reads + self.conflict_reads + self.capacity_reads

    @property
    def total_write_misses(self) -> int:
        return self.compulsory_writes + self.conflict_writes + self.capacity_writes

    @property
    def read_hits(self) -> int:
        return self.reads - self.total_read_misses

    @property
    def write_hits(self) -> int:
        return self.writes - self.total_write_misses

    @property
    def read_miss_rate(self) -> float:
        return _rate(self.total_read_misses, self.reads)

    @property
    def write_miss_rate(self) -> float:
        return _rate(self.total_write_misses, self.writes)

    @property
    def read_misses_excluding_compulsory(self) -> int:
        return self.total_read_misses - self.compulsory_reads

    @property
    def write_misses_excluding_compulsory(self) -> int:
        return self.total_write_misses - self.compulsory_writes

    @property
    def read_miss_rate_excluding_compulsory(self) -> float:
        return _rate(self.read_misses_excluding_compulsory, self.reads)

    @property
    def write_miss_rate_excluding_compulsory(self) -> float:
        return _rate(self.write_misses_excluding_compulsory, self.writes)

    @property
    def miss_rate(self) -> float:
        """Miss rate over reads and writes together."""
        return _rate(self.total_read_misses + self.total_write_misses, self.reads + self.writes)

    def as_dict(self) -> Dict[str, object]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update(
            total_read_misses=self.total_read_misses,
            read_miss_rate=self.read_miss_rate,
            total_write_misses=self.total_write_misses,
            write_miss_rate=self.write_miss_rate,
            miss_rate=self.miss_rate,
        )
        return data


class Exporter:
    @staticmethod
    def export_stats_csv(path: str, stats: Mapping[str, LevelStats]):
        header = ["level"] + list(COUNTERS) + [
            "total_read_misses", "read_miss_rate", "total_write_misses", "write_miss_rate", "miss_rate",
        ]
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            for name, s in stats.items():
                writer.writerow([name] + [getattr(s, c) for c in COUNTERS] + [
                    s.total_read_misses, round(s.read_miss_rate, 4),
                    s.total_write_misses, round(s.write_miss_rate, 4), round(s.miss_rate, 4),
                ])

    @staticmethod
    def export_stats_json(path: str, stats: Mapping[str, LevelStats]):
        data = {name: s.as_dict() for name, s in stats.items()}
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)


def export_chart(stats: Mapping[str, LevelStats], fpath: str, fmt: Optional[str] = None) -> str:
    """Render the read/write miss rate of every level as a bar chart.

    The format follows the file extension (pdf, png, svg...) unless `fmt`
    is given. Returns the saved path.
    """
    # Use matplotlib without a display
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    names = list(stats)
    reads = [stats[n].read_miss_rate for n in names]
    writes = [stats[n].write_miss_rate for n in names]
    xs = range(len(names))
    width = 0.4

    fig, ax = plt.subplots(figsize=(6, 3))
    ax.bar([x - width / 2 for x in xs], reads, width, label="read", color="#FFA500")
    ax.bar([x + width / 2 for x in xs], writes, width, label="write", color="#4682B4")
    ax.set_xticks(list(xs))
    ax.set_xticklabels(names)
    ax.set_ylim(0, 100)
    ax.set_ylabel("Miss rate (%)")
    ax.legend()
    fig.tight_layout()
    fig.savefig(fpath, format=fmt, dpi=150)
    plt.close(fig)
    return fpath


__all__ = ["COUNTERS", "Exporter", "LevelStats", "export_chart"]
