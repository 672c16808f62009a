"""清单指纹测试 - 顺序无关 / 内容敏感 / 复合指纹"""

from __future__ import annotations

import pytest

from depbundle.core.dep.resolver import resolve_manifest
from depbundle.core.dep.thumbprint import (
    canonical_json,
    composite_thumbprint,
    deps_thumbprint,
    thumbprint,
)
from depbundle.core.exceptions import ConfigError
from depbundle.core.models import LocalPackageRecord, Manifest, ThumbprintOptions


def _fp(data: dict, production: bool = True) -> str:
    return deps_thumbprint(resolve_manifest(Manifest.from_dict(data), "/base", production))


class TestDepsThumbprint:
    def test_default_length(self) -> None:
        fp = _fp({"dependencies": {"foo": "foo", "local": "file:../lib"}})
        assert len(fp) == 40
        assert all(c in "0123456789abcdef" for c in fp)

    def test_order_insensitive(self) -> None:
        a = {"dependencies": {"a": "1", "b": "2"}, "peerDependencies": {"c": "3"}}
        b = {"peerDependencies": {"c": "3"}, "dependencies": {"b": "2", "a": "1"}}
        assert _fp(a) == _fp(b)

    def test_specifier_change_changes_fingerprint(self) -> None:
        assert _fp({"dependencies": {"a": "1"}}) != _fp({"dependencies": {"a": "2"}})

    def test_name_change_changes_fingerprint(self) -> None:
        assert _fp({"dependencies": {"a": "1"}}) != _fp({"dependencies": {"b": "1"}})

    def test_dev_contributes_outside_production(self) -> None:
        data = {"dependencies": {"a": "1"}, "devDependencies": {"d": "1"}}
        assert _fp(data, production=True) == _fp({"dependencies": {"a": "1"}})
        assert _fp(data, production=False) != _fp(data, production=True)

    def test_absent_differs_from_empty(self) -> None:
        assert _fp({"dependencies": {}}) != _fp({})

    def test_non_dependency_keys_ignored(self) -> None:
        assert _fp({"name": "x", "dependencies": {"a": "1"}}) == _fp({"dependencies": {"a": "1"}})


class TestOptions:
    def test_sha256_hex(self) -> None:
        assert len(thumbprint({"a": 1}, ThumbprintOptions(algorithm="sha256"))) == 64

    def test_base64(self) -> None:
        fp = thumbprint({"a": 1}, ThumbprintOptions(encoding="base64"))
        assert len(fp) == 28 and fp.endswith("=")

    @pytest.mark.parametrize("opts", [
        ThumbprintOptions(algorithm="nope"),
        ThumbprintOptions(encoding="rot13"),
    ])
    def test_invalid_options_raise(self, opts: ThumbprintOptions) -> None:
        with pytest.raises(ConfigError):
            thumbprint({"a": 1}, opts)

    def test_canonical_json_sorted_compact(self) -> None:
        assert canonical_json({"b": {"y": 1, "x": 2}, "a": []}) == '{"a":[],"b":{"x":2,"y":1}}'


class TestCompositeThumbprint:
    def test_no_records_returns_base(self) -> None:
        assert composite_thumbprint("abc", {}) == "abc"

    def test_record_order_irrelevant(self) -> None:
        r1 = {"a": LocalPackageRecord("i1"), "b": LocalPackageRecord("i2")}
        r2 = {"b": LocalPackageRecord("i2"), "a": LocalPackageRecord("i1")}
        assert composite_thumbprint("base", r1) == composite_thumbprint("base", r2)

    def test_integrity_change_changes_composite(self) -> None:
        before = composite_thumbprint("base", {"a": LocalPackageRecord("i1")})
        after = composite_thumbprint("base", {"a": LocalPackageRecord("i2")})
        assert before != after
        assert len(before) == 40
