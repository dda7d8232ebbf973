"""Typed cache configuration.

Each level is described by a `CacheConfig`; the whole machine by a
`HierarchyConfig` holding the instruction cache and up to three data cache
levels. Everything is validated on construction so the simulator never
has to re-check a configuration while a trace is running.

Command-line encodings:

    I-cache:  blocks:words_per_block:associativity:replacement
              e.g. 4096:1:2:R
    D-cache:  level:blocks:words_per_block:associativity:replacement:write:alloc
              e.g. 1:4096:2:4:R:B:A

replacement is L (LRU) or R (Random) and only checked when associativity
is above one; write is B (write-back) or T (write-through); alloc is
A (write-allocate) or N (write-no-allocate).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from .address import CacheLayout
from .errors import ConfigError

MAX_DCACHE_LEVELS = 3
DEFAULT_SEED = 1000


class ReplacementKind(str, Enum):
    LRU = "LRU"
    RANDOM = "Random"


class WriteScheme(str, Enum):
    WRITE_BACK = "write-back"
    WRITE_THROUGH = "write-through"


class AllocateScheme(str, Enum):
    ALLOCATE = "write-allocate"
    NO_ALLOCATE = "write-no-allocate"


REPLACEMENT_CODES = {"L": ReplacementKind.LRU, "R": ReplacementKind.RANDOM}
WRITE_CODES = {"B": WriteScheme.WRITE_BACK, "T": WriteScheme.WRITE_THROUGH}
ALLOCATE_CODES = {"A": AllocateScheme.ALLOCATE, "N": AllocateScheme.NO_ALLOCATE}


def _coerce(enum_cls, value, what: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"invalid {what} {value!r} (expected one of: {choices})") from None


def _to_int(value, what: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{what} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{what} must be an integer, got {value!r}") from None


@dataclass
class CacheConfig:
    """Shape and policies of one cache level.

    `block_count` of 0 means the level is disabled. `write_scheme` and
    `allocate_scheme` are ignored for the instruction cache.
    """

    block_count: int
    words_per_block: int = 1
    associativity: int = 1
    replacement: ReplacementKind = ReplacementKind.LRU
    write_scheme: WriteScheme = WriteScheme.WRITE_BACK
    allocate_scheme: AllocateScheme = AllocateScheme.ALLOCATE
    _layout: Optional[CacheLayout] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.block_count = _to_int(self.block_count, "block count")
        self.words_per_block = _to_int(self.words_per_block, "words per block")
        self.associativity = _to_int(self.associativity, "associativity")
        self.replacement = _coerce(ReplacementKind, self.replacement, "replacement policy")
        self.write_scheme = _coerce(WriteScheme, self.write_scheme, "write scheme")
        self.allocate_scheme = _coerce(AllocateScheme, self.allocate_scheme, "allocation scheme")

        if self.block_count < 0:
            raise ConfigError(f"block count must not be negative, got {self.block_count}")
        if self.associativity < 1:
            raise ConfigError(f"associativity must be >= 1, got {self.associativity}")
        if self.enabled:
            self._layout = CacheLayout.from_shape(self.block_count, self.words_per_block, self.associativity)

    @property
    def enabled(self) -> bool:
        return self.block_count != 0

    @property
    def layout(self) -> CacheLayout:
        if self._layout is None:
            raise ConfigError("a disabled cache level has no layout")
        return self._layout

    @property
    def rows(self) -> int:
        return self.layout.rows

    @classmethod
    def from_mapping(cls, data: dict, what: str = "cache") -> "CacheConfig":
        """Build from a YAML/JSON style mapping of field names."""
        known = {f.name for f in fields(cls) if f.init}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"unknown {what} setting(s): {', '.join(sorted(unknown))}")
        if "block_count" not in data:
            raise ConfigError(f"{what} configuration needs a block_count")
        return cls(**data)

    @classmethod
    def parse_icache(cls, spec: str) -> "CacheConfig":
        parts = spec.split(":")
        if len(parts) != 4:
            raise ConfigError("Invalid I-cache parameters.")
        try:
            blocks, words, assoc = (int(p) for p in parts[:3])
        except ValueError:
            raise ConfigError("Invalid I-cache parameters.") from None
        replacement = ReplacementKind.LRU
        if assoc > 1:
            if parts[3] not in REPLACEMENT_CODES:
                raise ConfigError("Invalid I-cache replacement scheme.")
            replacement = REPLACEMENT_CODES[parts[3]]
        return cls(blocks, words, assoc, replacement)

    @classmethod
    def parse_dcache(cls, spec: str) -> Tuple[int, "CacheConfig"]:
        """Decode a D-cache spec; returns (level, config) with level in 1..3."""
        parts = spec.split(":")
        if len(parts) != 7:
            raise ConfigError("Invalid D-cache parameters.")
        try:
            level, blocks, words, assoc = (int(p) for p in parts[:4])
        except ValueError:
            raise ConfigError("Invalid D-cache parameters.") from None
        repl_code, write_code, alloc_code = parts[4:]
        if level < 1 or level > MAX_DCACHE_LEVELS:
            raise ConfigError("Invalid D-cache level.")
        replacement = ReplacementKind.LRU
        if assoc > 1:
            if repl_code not in REPLACEMENT_CODES:
                raise ConfigError("Invalid D-cache replacement scheme.")
            replacement = REPLACEMENT_CODES[repl_code]
        if write_code not in WRITE_CODES:
            raise ConfigError("Invalid D-cache write scheme.")
        if alloc_code not in ALLOCATE_CODES:
            raise ConfigError("Invalid D-cache allocation scheme.")
        return level, cls(blocks, words, assoc, replacement, WRITE_CODES[write_code], ALLOCATE_CODES[alloc_code])

    def describe(self, data: bool = False) -> List[str]:
        lines = [
            f"{self.block_count} blocks",
            f"{self.words_per_block} word(s) per block",
            f"{self.associativity}-way associative",
        ]
        if self.associativity > 1:
            lines.append(f"replacement: {self.replacement.value}")
        if data:
            lines.append(f"write scheme: {self.write_scheme.value}")
            lines.append(f"allocation scheme: {self.allocate_scheme.value}")
        return lines


def _chain(levels: Dict[int, CacheConfig]) -> List[CacheConfig]:
    """Turn {level: config} into the ordered L1..Ln list, checking nesting."""
    enabled = {lvl for lvl, cfg in levels.items() if cfg.enabled}
    for lvl in enabled:
        if lvl < 1 or lvl > MAX_DCACHE_LEVELS:
            raise ConfigError(f"Invalid D-cache level {lvl}.")
        if lvl > 1 and lvl - 1 not in enabled:
            raise ConfigError(f"L{lvl} D-cache specified, but not L{lvl - 1}.")
    return [levels[lvl] for lvl in sorted(enabled)]


@dataclass
class HierarchyConfig:
    """One instruction cache plus an ordered chain of 0-3 data caches."""

    icache: Optional[CacheConfig] = None
    dcaches: List[CacheConfig] = field(default_factory=list)
    seed: int = DEFAULT_SEED

    def __post_init__(self):
        self.dcaches = list(self.dcaches)
        if self.icache is not None:
            self.validate()

    def validate(self) -> None:
        if self.icache is None:
            raise ConfigError("No I-cache parameters specified.")
        if not self.icache.enabled:
            raise ConfigError("the instruction cache needs at least one block")
        if len(self.dcaches) > MAX_DCACHE_LEVELS:
            raise ConfigError(f"at most {MAX_DCACHE_LEVELS} data cache levels are supported")
        self.dcaches = _chain({i + 1: cfg for i, cfg in enumerate(self.dcaches)})
        for i, cfg in enumerate(self.dcaches, start=1):
            if (cfg.write_scheme is WriteScheme.WRITE_BACK
                    and cfg.allocate_scheme is AllocateScheme.NO_ALLOCATE):
                raise ConfigError(f"L{i} D-cache: write-back with write-no-allocate is not supported")
        self.seed = _to_int(self.seed, "seed")

    @classmethod
    def from_specs(cls, icache_specs: Iterable[str], dcache_specs: Iterable[str] = (),
                   seed: int = DEFAULT_SEED) -> "HierarchyConfig":
        """Build from command-line style specs (see module docstring)."""
        config = cls(seed=seed)
        config._apply_specs(list(icache_specs), list(dcache_specs))
        config.validate()
        return config

    def _apply_specs(self, icache_specs: List[str], dcache_specs: List[str]) -> None:
        if len(icache_specs) > 1:
            raise ConfigError("Duplicate I-cache parameters.")
        if icache_specs:
            self.icache = CacheConfig.parse_icache(icache_specs[0])

        levels = {i + 1: cfg for i, cfg in enumerate(self.dcaches)}
        seen = set()
        for spec in dcache_specs:
            level, cfg = CacheConfig.parse_dcache(spec)
            if level in seen:
                raise ConfigError("Duplicate D-cache level parameters.")
            seen.add(level)
            levels[level] = cfg
        self.dcaches = _chain(levels)

    def update_from_yaml(self, yaml_path) -> None:
        """Update the configuration from a YAML file.

        Recognised keys: `seed`, `icache` (mapping of CacheConfig fields or
        an I-cache spec string) and `dcache` (list of mappings carrying a
        `level` key, or D-cache spec strings).
        """
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{yaml_path}: expected a mapping at the top level")
        unknown = set(data) - {"seed", "icache", "dcache"}
        if unknown:
            raise ConfigError(f"{yaml_path}: unknown key(s): {', '.join(sorted(unknown))}")

        if "seed" in data:
            self.seed = _to_int(data["seed"], "seed")

        icache = data.get("icache")
        if isinstance(icache, str):
            self.icache = CacheConfig.parse_icache(icache)
        elif isinstance(icache, dict):
            self.icache = CacheConfig.from_mapping(icache, "icache")
        elif icache is not None:
            raise ConfigError(f"{yaml_path}: icache must be a mapping or a spec string")

        dcache = data.get("dcache") or []
        if not isinstance(dcache, list):
            raise ConfigError(f"{yaml_path}: dcache must be a list")
        levels: Dict[int, CacheConfig] = {}
        for entry in dcache:
            if isinstance(entry, str):
                level, cfg = CacheConfig.parse_dcache(entry)
            elif isinstance(entry, dict):
                entry = dict(entry)
                level = _to_int(entry.pop("level", len(levels) + 1), "level")
                cfg = CacheConfig.from_mapping(entry, f"L{level} dcache")
            else:
                raise ConfigError(f"{yaml_path}: dcache entries must be mappings or spec strings")
            if level in levels:
                raise ConfigError("Duplicate D-cache level parameters.")
            levels[level] = cfg
        if levels:
            self.dcaches = _chain(levels)

    @classmethod
    def from_yaml(cls, yaml_path) -> "HierarchyConfig":
        config = cls()
        config.update_from_yaml(yaml_path)
        config.validate()
        return config

    @classmethod
    def from_args(cls, args) -> "HierarchyConfig":
        """Build from parsed CLI arguments; command-line specs override YAML."""
        config = cls()
        if getattr(args, "config", None):
            if not Path(args.config).exists():
                raise ConfigError(f"Config file {args.config} not found.")
            config.update_from_yaml(args.config)
        config._apply_specs(getattr(args, "icache", None) or [], getattr(args, "dcache", None) or [])
        if getattr(args, "seed", None) is not None:
            config.seed = args.seed
        config.validate()
        return config

    def describe(self) -> str:
        """Human readable configuration dump."""
        out = ["Instruction cache:"]
        out.extend("\t" + line for line in self.icache.describe())
        out.append("")
        for i, cfg in enumerate(self.dcaches, start=1):
            out.append(f"Data cache level {i}:")
            out.extend("\t" + line for line in cfg.describe(data=True))
            out.append("")
        return "\n".join(out)


__all__ = [
    "AllocateScheme",
    "CacheConfig",
    "DEFAULT_SEED",
    "HierarchyConfig",
    "MAX_DCACHE_LEVELS",
    "ReplacementKind",
    "WriteScheme",
]
