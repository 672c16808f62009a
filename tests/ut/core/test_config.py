"""Config 加载与 BundleOptions 构造测试"""

from __future__ import annotations

from pathlib import Path

import yaml

from depbundle.core import config as cfgmod
from depbundle.core.config import Config, get_config, init_config
from depbundle.core.models import BundleOptions


class TestConfig:
    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        cfg = Config.from_file(str(tmp_path / "none.yml"))
        assert cfg == Config()
        assert cfg.thumbprint_algorithm == "sha1"

    def test_known_and_extra_keys(self, tmp_path: Path) -> None:
        p = tmp_path / "cfg.yml"
        p.write_text(yaml.safe_dump({
            "cache_dir": "/tmp/c", "exclude": ["**/*.md"], "team": "infra",
        }))
        cfg = Config.from_file(str(p))
        assert cfg.cache_dir == "/tmp/c"
        assert cfg.exclude == ["**/*.md"]
        assert cfg.extra == {"team": "infra"}

    def test_init_config_sets_global(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(cfgmod, "_current", None)
        p = tmp_path / "cfg.yml"
        p.write_text("max_workers: 2\n")
        init_config(str(p))
        assert get_config().max_workers == 2


class TestBundleOptionsFromConfig:
    def test_from_config(self) -> None:
        cfg = Config(compression="STORE", exclude=["a"], archive_root="opt",
                     thumbprint_algorithm="sha256")
        opts = BundleOptions.from_config(cfg)
        assert opts.compression == "STORE"
        assert opts.exclude == ["a"]
        assert opts.archive_root == "opt"
        assert opts.thumbprint.algorithm == "sha256"
        assert opts.disable_cache is False

    def test_overrides_skip_none(self) -> None:
        opts = BundleOptions.from_config(
            Config(), archive_root=None, disable_cache=True, exclude=["x"],
        )
        assert opts.archive_root == ""
        assert opts.disable_cache is True
        assert opts.exclude == ["x"]
