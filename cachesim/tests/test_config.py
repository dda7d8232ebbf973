import argparse

import pytest
import yaml

from cachesim.core.config import (
    AllocateScheme,
    CacheConfig,
    HierarchyConfig,
    ReplacementKind,
    WriteScheme,
)
from cachesim.core.errors import ConfigError


def test_parse_icache_spec():
    cfg = CacheConfig.parse_icache("4096:1:2:R")
    assert cfg.block_count == 4096
    assert cfg.words_per_block == 1
    assert cfg.associativity == 2
    assert cfg.replacement is ReplacementKind.RANDOM
    assert cfg.rows == 2048


def test_replacement_letter_ignored_when_direct_mapped():
    cfg = CacheConfig.parse_icache("16:1:1:X")
    assert cfg.replacement is ReplacementKind.LRU


def test_parse_dcache_spec():
    level, cfg = CacheConfig.parse_dcache("2:16384:4:8:L:T:N")
    assert level == 2
    assert cfg.block_count == 16384
    assert cfg.replacement is ReplacementKind.LRU
    assert cfg.write_scheme is WriteScheme.WRITE_THROUGH
    assert cfg.allocate_scheme is AllocateScheme.NO_ALLOCATE


@pytest.mark.parametrize('spec,message', [
    ("1:16:1:2:X:B:A", "replacement"),
    ("1:16:1:1:L:X:A", "write scheme"),
    ("1:16:1:1:L:B:X", "allocation scheme"),
    ("4:16:1:1:L:B:A", "level"),
    ("1:16:1:1:L:B", "parameters"),
    ("1:sixteen:1:1:L:B:A", "parameters"),
])
def test_bad_dcache_specs(spec, message):
    with pytest.raises(ConfigError, match=message):
        CacheConfig.parse_dcache(spec)


def test_enum_names_accepted_as_strings():
    cfg = CacheConfig(8, 2, 2, replacement="Random", write_scheme="write-through",
                      allocate_scheme="write-no-allocate")
    assert cfg.replacement is ReplacementKind.RANDOM
    assert cfg.write_scheme is WriteScheme.WRITE_THROUGH
    with pytest.raises(ConfigError):
        CacheConfig(8, 1, 1, replacement="MRU")


def test_disabled_level_has_no_layout():
    cfg = CacheConfig(0)
    assert cfg.enabled is False
    with pytest.raises(ConfigError):
        cfg.layout


def test_hierarchy_from_specs_orders_levels():
    config = HierarchyConfig.from_specs(["16:1:1:L"], ["2:64:2:2:L:B:A", "1:16:1:1:L:T:N"])
    assert [c.block_count for c in config.dcaches] == [16, 64]


@pytest.mark.parametrize('icache,dcache,message', [
    ([], [], "No I-cache"),
    (["16:1:1:L", "16:1:1:L"], [], "Duplicate I-cache"),
    (["16:1:1:L"], ["1:16:1:1:L:B:A", "1:16:1:1:L:B:A"], "Duplicate D-cache"),
    (["16:1:1:L"], ["2:16:1:1:L:B:A"], "L2 D-cache specified, but not L1"),
    (["16:1:1:L"], ["1:16:1:1:L:B:A", "3:16:1:1:L:B:A"], "L3 D-cache specified, but not L2"),
    (["16:1:1:L"], ["1:16:1:1:L:B:N"], "write-no-allocate"),
    (["0:1:1:L"], [], "at least one block"),
])
def test_hierarchy_configuration_errors(icache, dcache, message):
    with pytest.raises(ConfigError, match=message):
        HierarchyConfig.from_specs(icache, dcache)


def test_disabled_level_ends_chain():
    config = HierarchyConfig(CacheConfig(4), [CacheConfig(8), CacheConfig(0)])
    assert len(config.dcaches) == 1
    with pytest.raises(ConfigError):
        HierarchyConfig(CacheConfig(4), [CacheConfig(0), CacheConfig(8)])


def test_config_yaml_loading(tmp_path):
    yaml_content = {
        'seed': 7,
        'icache': {'block_count': 64, 'words_per_block': 2, 'associativity': 4, 'replacement': 'Random'},
        'dcache': [
            {'level': 1, 'block_count': 32, 'associativity': 2, 'write_scheme': 'write-through',
             'allocate_scheme': 'write-no-allocate'},
            "2:256:4:8:L:B:A",
        ],
    }
    yaml_file = tmp_path / "hierarchy.yaml"
    with open(yaml_file, 'w') as f:
        yaml.dump(yaml_content, f)

    config = HierarchyConfig.from_yaml(yaml_file)

    assert config.seed == 7
    assert config.icache.replacement is ReplacementKind.RANDOM
    assert config.dcaches[0].write_scheme is WriteScheme.WRITE_THROUGH
    assert config.dcaches[1].block_count == 256


def test_config_yaml_unknown_field(tmp_path):
    yaml_file = tmp_path / "bad.yaml"
    yaml_file.write_text("icache:\n  block_count: 4\n  ways: 2\n")
    with pytest.raises(ConfigError, match="ways"):
        HierarchyConfig.from_yaml(yaml_file)


def test_config_cli_override(tmp_path):
    yaml_file = tmp_path / "hierarchy.yaml"
    yaml_file.write_text(
        "icache: '16:1:1:L'\n"
        "dcache:\n"
        "  - '1:16:1:1:L:B:A'\n"
        "  - '2:64:1:2:L:B:A'\n"
    )
    args = argparse.Namespace(config=str(yaml_file), icache=["32:1:2:R"],
                              dcache=["2:128:1:4:L:T:A"], seed=None)

    config = HierarchyConfig.from_args(args)

    assert config.icache.block_count == 32          # overridden
    assert config.dcaches[0].block_count == 16      # from YAML
    assert config.dcaches[1].block_count == 128     # overridden
    assert config.seed == 1000


def test_missing_config_file(tmp_path):
    args = argparse.Namespace(config=str(tmp_path / "nope.yaml"), icache=["16:1:1:L"], dcache=None)
    with pytest.raises(ConfigError, match="not found"):
        HierarchyConfig.from_args(args)


def test_describe_lists_every_level():
    config = HierarchyConfig.from_specs(["4096:1:2:R"], ["1:4096:2:4:R:B:A"])
    text = config.describe()
    assert "Instruction cache:" in text
    assert "replacement: Random" in text
    assert "Data cache level 1:" in text
    assert "write scheme: write-back" in text
    assert "allocation scheme: write-allocate" in text
