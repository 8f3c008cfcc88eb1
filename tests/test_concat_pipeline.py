import pytest

from conftest import FakeEngine, make_item
from ffmpeg_advanced.domain.exceptions import NotFoundException
from ffmpeg_advanced.domain.items import NodeParameters, WorkItem
from ffmpeg_advanced.pipeline.batch_pipeline import BatchPipeline
from ffmpeg_advanced.pipeline.concat_pipeline import ConcatenationController


def run_batch(parameters, items, engine, temp_manager, continue_on_fail=False):
    pipeline = BatchPipeline(
        NodeParameters(parameters),
        engine=engine,
        temp_manager=temp_manager,
        continue_on_fail=continue_on_fail,
    )
    return pipeline.run(items)


def test_detection_uses_the_first_item_only():
    items = [make_item(), make_item()]

    assert ConcatenationController.detects(items, NodeParameters({"operation": "concatenate"}))
    assert not ConcatenationController.detects(items, NodeParameters({"operation": "convert"}))
    assert not ConcatenationController.detects(items, NodeParameters({"operation": "bogus"}))
    assert not ConcatenationController.detects([], NodeParameters({"operation": "concatenate"}))


def test_stream_copy_from_three_payloads_writes_ordered_manifest(engine, temp_manager, temp_dir):
    items = [make_item(data=b"one"), make_item(data=b"two"), make_item(data=b"three")]

    results = run_batch({"operation": "concatenate"}, items, engine, temp_manager)

    assert len(engine.plans) == 1
    assert len(engine.manifests) == 1
    lines = engine.manifests[0].splitlines()
    assert len(lines) == 3
    assert all(line.startswith("file '") and line.endswith(".mp4'") for line in lines)
    assert engine.manifest_inputs == [[b"one", b"two", b"three"]]
    assert engine.plans[0].output_options == ("-c", "copy")

    assert len(results) == 1
    assert results[0].json == {"operation": "concatenate", "strategy": "stream_copy", "input_count": 3}
    assert results[0].binary["data"].data == b"encoded"
    # Manifest, temp inputs and temp output are gone.
    assert list(temp_dir.iterdir()) == []


def test_items_without_the_field_are_left_out(engine, temp_manager):
    items = [make_item(), WorkItem(json={"note": "no media"}), make_item()]

    results = run_batch({"operation": "concatenate"}, items, engine, temp_manager)

    assert len(engine.manifests[0].splitlines()) == 2
    assert results[0].json["input_count"] == 2


def test_reencode_from_paths(engine, temp_manager, temp_dir, tmp_path):
    paths = []
    for name in ("a.mp4", "b.mp4"):
        path = tmp_path / name
        path.write_bytes(b"x")
        paths.append(str(path.resolve()))

    results = run_batch(
        {"operation": "concatenate", "strategy": "reencode", "source": "paths", "input_paths": ",".join(paths)},
        [WorkItem()],
        engine,
        temp_manager,
    )

    plan = engine.plans[0]
    assert plan.input_paths == paths
    assert plan.filter_expression == "[0:v][0:a][1:v][1:a]concat=n=2:v=1:a=1[outv][outa]"
    assert engine.manifests == []
    assert results[0].json["strategy"] == "reencode"
    # Explicit inputs are not temp files.
    assert all(tmp_path.joinpath(name).exists() for name in ("a.mp4", "b.mp4"))
    assert list(temp_dir.iterdir()) == []


def test_missing_path_is_fatal_without_continue(engine, temp_manager, tmp_path):
    present = tmp_path / "a.mp4"
    present.write_bytes(b"x")

    with pytest.raises(NotFoundException, match="missing.mp4"):
        run_batch(
            {"operation": "concatenate", "source": "paths", "input_paths": [str(present), str(tmp_path / "missing.mp4")]},
            [WorkItem()],
            engine,
            temp_manager,
        )
    assert engine.plans == []


def test_missing_path_is_skipped_with_continue(engine, temp_manager, tmp_path):
    present = tmp_path / "a.mp4"
    present.write_bytes(b"x")

    results = run_batch(
        {"operation": "concatenate", "source": "paths", "input_paths": [str(tmp_path / "missing.mp4"), str(present)]},
        [WorkItem()],
        engine,
        temp_manager,
        continue_on_fail=True,
    )

    assert engine.manifests[0] == f"file '{present.resolve()}'\n"
    assert results[0].json["input_count"] == 1


def test_zero_inputs_is_fatal_without_continue(engine, temp_manager, temp_dir):
    items = [WorkItem(json={"n": 1}), WorkItem(json={"n": 2})]

    with pytest.raises(NotFoundException):
        run_batch({"operation": "concatenate"}, items, engine, temp_manager)

    assert engine.plans == []
    assert list(temp_dir.iterdir()) == []


def test_zero_inputs_with_continue_returns_batch_unchanged(engine, temp_manager):
    items = [WorkItem(json={"n": 1}), WorkItem(json={"n": 2})]

    results = run_batch({"operation": "concatenate"}, items, engine, temp_manager, continue_on_fail=True)

    assert results == items
    assert engine.plans == []


def test_execution_failure_releases_everything(temp_manager, temp_dir):
    engine = FakeEngine(fail=True)

    results = run_batch(
        {"operation": "concatenate"},
        [make_item(), make_item()],
        engine,
        temp_manager,
        continue_on_fail=True,
    )

    assert len(results) == 1
    assert results[0].json["error"].startswith("Concatenate: FFmpeg processing failed")
    assert list(temp_dir.iterdir()) == []


def test_concatenated_output_to_path(engine, temp_manager, tmp_path):
    destination = tmp_path / "out" / "joined.mkv"

    results = run_batch(
        {"operation": "concatenate", "format": "mkv", "output_mode": "file", "output_path": str(destination)},
        [make_item(), make_item()],
        engine,
        temp_manager,
    )

    assert destination.read_bytes() == b"encoded"
    assert results[0].json["output_path"] == str(destination)
    assert results[0].json["success"] is True


def test_blank_path_list_is_fatal_without_continue(engine, temp_manager):
    with pytest.raises(NotFoundException):
        run_batch(
            {"operation": "concatenate", "source": "paths", "input_paths": " , "},
            [WorkItem(json={"n": 1}), WorkItem(json={"n": 2})],
            engine,
            temp_manager,
        )
    assert engine.plans == []


def test_blank_path_list_with_continue_returns_batch_unchanged(engine, temp_manager, temp_dir):
    items = [WorkItem(json={"n": 1}), WorkItem(json={"n": 2})]

    results = run_batch(
        {"operation": "concatenate", "source": "paths", "input_paths": " , "},
        items,
        engine,
        temp_manager,
        continue_on_fail=True,
    )

    assert results == items
    assert engine.plans == []
    assert list(temp_dir.iterdir()) == []
