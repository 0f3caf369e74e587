"""Unit tests for the bundle producer."""

from __future__ import annotations

from pathlib import Path

import pytest

from gxr.core.classifier import classify_components
from gxr.core.producer import (
    artifact_hash,
    discard_bundles,
    make_targets,
    produce_bundles,
    publish_bundles,
    staging_path,
)
from gxr.models import BuildConfig, BuildStatus, BuildTarget
from tests.conftest import COUNTER_SOURCE, FakeBundler, write_source


def _targets(config: BuildConfig, *names: str) -> list[BuildTarget]:
    for name in names:
        write_source(config.components_dir, f"{name}.tsx", COUNTER_SOURCE.replace("Counter", name))
    return make_targets(classify_components(config.components_dir), config)


def test_make_targets_derives_output_from_key(config: BuildConfig) -> None:
    write_source(config.components_dir, "forms/Input/index.tsx", COUNTER_SOURCE)
    (target,) = make_targets(classify_components(config.components_dir), config)

    assert target.source == (config.components_dir / "forms/Input/index.tsx").resolve()
    assert target.output == (config.output_dir / "components" / "forms" / "Input.js").resolve()
    assert target.status is BuildStatus.PENDING


@pytest.mark.asyncio
async def test_all_targets_succeed(config: BuildConfig, fake_bundler: FakeBundler) -> None:
    targets = _targets(config, "Alpha", "Beta")

    results = await produce_bundles(targets, fake_bundler, concurrency=2)

    assert [r.status for r in results] == [BuildStatus.SUCCEEDED, BuildStatus.SUCCEEDED]
    for result in results:
        staged = staging_path(result.output)
        assert staged.is_file()
        assert not result.output.exists()
        assert result.artifact_hash == artifact_hash(staged)
        assert result.error is None


@pytest.mark.asyncio
async def test_failure_is_isolated_to_one_target(config: BuildConfig) -> None:
    bundler = FakeBundler(failures={"Beta": "Unexpected token at Beta.tsx:3:1"})
    targets = _targets(config, "Alpha", "Beta", "Gamma")

    results = await produce_bundles(targets, bundler, concurrency=3)

    by_key = {r.component.key: r for r in results}
    assert by_key["Alpha"].status is BuildStatus.SUCCEEDED
    assert by_key["Gamma"].status is BuildStatus.SUCCEEDED
    assert by_key["Beta"].status is BuildStatus.FAILED
    assert by_key["Beta"].error == "Unexpected token at Beta.tsx:3:1"
    assert sorted(bundler.calls) == ["Alpha", "Beta", "Gamma"]


@pytest.mark.asyncio
async def test_results_keep_target_order(config: BuildConfig) -> None:
    targets = _targets(config, "Alpha", "Beta", "Gamma", "Delta")

    results = await produce_bundles(targets, FakeBundler(delay=0.01), concurrency=4)

    assert [r.component.key for r in results] == [t.component.key for t in targets]


@pytest.mark.asyncio
async def test_concurrency_is_bounded(config: BuildConfig) -> None:
    bundler = FakeBundler(delay=0.02)
    targets = _targets(config, "A1", "A2", "A3", "A4", "A5", "A6")

    await produce_bundles(targets, bundler, concurrency=2)

    assert bundler.max_active == 2
    assert len(bundler.calls) == 6


@pytest.mark.asyncio
async def test_missing_artifact_marks_failure(config: BuildConfig) -> None:
    class _SilentBundler:
        async def bundle(self, target: BuildTarget) -> None:
            return None

    (target,) = _targets(config, "Alpha")

    (result,) = await produce_bundles([target], _SilentBundler())

    assert result.status is BuildStatus.FAILED
    assert "wrote no file" in (result.error or "")


@pytest.mark.asyncio
async def test_leftover_artifacts_do_not_count_as_output(config: BuildConfig) -> None:
    class _SilentBundler:
        async def bundle(self, target: BuildTarget) -> None:
            return None

    (target,) = _targets(config, "Alpha")
    target.output.parent.mkdir(parents=True)
    target.output.write_text("// published by an earlier pass", encoding="utf-8")
    staging_path(target.output).write_text("// left behind by an interrupted pass", encoding="utf-8")

    (result,) = await produce_bundles([target], _SilentBundler())

    assert result.status is BuildStatus.FAILED
    assert "wrote no file" in (result.error or "")
    assert not staging_path(target.output).exists()


@pytest.mark.asyncio
async def test_unexpected_exception_marks_failure(config: BuildConfig) -> None:
    class _BrokenBundler:
        async def bundle(self, target: BuildTarget) -> None:
            raise RuntimeError("boom")

    (target,) = _targets(config, "Alpha")

    (result,) = await produce_bundles([target], _BrokenBundler())

    assert result.status is BuildStatus.FAILED
    assert result.error == "RuntimeError: boom"


@pytest.mark.asyncio
async def test_invalid_concurrency(config: BuildConfig, fake_bundler: FakeBundler) -> None:
    with pytest.raises(ValueError):
        await produce_bundles([], fake_bundler, concurrency=0)


@pytest.mark.asyncio
async def test_empty_target_list(fake_bundler: FakeBundler) -> None:
    assert await produce_bundles([], fake_bundler) == []


def test_artifact_hash_is_content_derived(tmp_path: Path) -> None:
    first = tmp_path / "a.js"
    second = tmp_path / "b.js"
    first.write_text("console.log(1);", encoding="utf-8")
    second.write_text("console.log(1);", encoding="utf-8")

    assert artifact_hash(first) == artifact_hash(second)
    assert len(artifact_hash(first)) == 16


@pytest.mark.asyncio
async def test_publish_moves_staged_bundles_into_place(config: BuildConfig, fake_bundler: FakeBundler) -> None:
    results = await produce_bundles(_targets(config, "Alpha", "Beta"), fake_bundler)

    publish_bundles(results)

    for result in results:
        assert not staging_path(result.output).exists()
        assert artifact_hash(result.output) == result.artifact_hash


@pytest.mark.asyncio
async def test_discard_removes_staged_bundles(config: BuildConfig) -> None:
    bundler = FakeBundler(failures={"Beta": "Unexpected token"})
    results = await produce_bundles(_targets(config, "Alpha", "Beta"), bundler)

    discard_bundles(results)

    assert list(config.bundle_dir.iterdir()) == []
