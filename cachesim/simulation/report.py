"""Text report of a finished run."""
from typing import List, Mapping

from cachesim.data.stats_export import LevelStats


def _direction(lines: List[str], label: str, count: int, words_label: str, words: int,
               compulsory: int, conflict: int, capacity: int, total: int, rate: float,
               total_excl: int, rate_excl: float):
    lines.append(f"\tNumber of {label}s performed: {count}")
    lines.append(f"\t{words_label}: {words}")
    lines.append(f"\tCompulsory {label} misses: {compulsory}")
    lines.append(f"\tConflict {label} misses: {conflict}")
    lines.append(f"\tCapacity {label} misses: {capacity}")
    lines.append(f"\tTotal {label} misses: {total}")
    lines.append(f"\t{label.capitalize()} miss rate: {rate:.2f}%")
    lines.append(f"\tTotal {label} misses (excluding compulsory): {total_excl}")
    lines.append(f"\t{label.capitalize()} miss rate (excluding compulsory): {rate_excl:.2f}%")


def format_level(stats: LevelStats) -> str:
    lines = [f"{stats.name} statistics:"]
    _direction(
        lines, "read", stats.reads, "Words read from memory", stats.words_read,
        stats.compulsory_reads, stats.conflict_reads, stats.capacity_reads,
        stats.total_read_misses, stats.read_miss_rate,
        stats.read_misses_excluding_compulsory, stats.read_miss_rate_excluding_compulsory,
    )
    if not stats.instruction:
        _direction(
            lines, "write", stats.writes, "Words written to memory", stats.words_written,
            stats.compulsory_writes, stats.conflict_writes, stats.capacity_writes,
            stats.total_write_misses, stats.write_miss_rate,
            stats.write_misses_excluding_compulsory, stats.write_miss_rate_excluding_compulsory,
        )
    return "\n".join(lines)


def format_report(stats: Mapping[str, LevelStats]) -> str:
    """Report for the instruction cache and every data level, in order."""
    return "\n\n".join(format_level(s) for s in stats.values()) + "\n"


__all__ = ["format_level", "format_report"]
