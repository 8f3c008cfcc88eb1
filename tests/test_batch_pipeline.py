import pytest

from conftest import FakeEngine, make_item
from ffmpeg_advanced.domain.exceptions import ExecutionException, NotFoundException, ValidationException
from ffmpeg_advanced.domain.items import BinaryPayload, NodeParameters, WorkItem
from ffmpeg_advanced.pipeline.batch_pipeline import BatchPipeline


def make_pipeline(parameters, engine, temp_manager, continue_on_fail=False, per_item=None):
    return BatchPipeline(
        NodeParameters(parameters, per_item),
        engine=engine,
        temp_manager=temp_manager,
        continue_on_fail=continue_on_fail,
    )


def test_convert_returns_binary_output_and_cleans_up(engine, temp_manager, temp_dir):
    pipeline = make_pipeline({"operation": "convert", "format": "mov"}, engine, temp_manager)

    results = pipeline.run([make_item(title="intro")])

    assert len(results) == 1
    payload = results[0].binary["data"]
    assert payload.data == b"encoded"
    assert payload.file_name.startswith("output_")
    assert payload.file_name.endswith(".mov")
    assert payload.mime_type == "video/quicktime"
    assert results[0].json == {"title": "intro"}
    # The temp input existed while FFmpeg ran.
    assert engine.existing_inputs == [[True]]
    assert list(temp_dir.iterdir()) == []


def test_custom_output_filename_and_field(engine, temp_manager):
    pipeline = make_pipeline(
        {"operation": "extract_audio", "audio_format": "mp3", "output_filename": "voice", "output_binary_property": "audio"},
        engine,
        temp_manager,
    )

    result = pipeline.run([make_item()])[0]

    assert list(result.binary) == ["audio"]
    assert result.binary["audio"].file_name == "voice.mp3"


def test_temp_input_keeps_the_payload_extension(engine, temp_manager):
    pipeline = make_pipeline({"operation": "image_to_video"}, engine, temp_manager)

    pipeline.run([make_item(file_name="still.png")])

    assert engine.plans[0].input_paths[0].endswith(".png")
    assert engine.plans[0].inputs[0].options == ("-loop", "1")


def test_per_item_parameters(engine, temp_manager):
    pipeline = make_pipeline(
        {"operation": "compress", "crf": 23},
        engine,
        temp_manager,
        per_item=[{}, {"crf": 35}],
    )

    pipeline.run([make_item(), make_item()])

    assert "23" in engine.plans[0].output_options
    assert "35" in engine.plans[1].output_options


def test_path_input_and_file_output(engine, temp_manager, temp_dir, tmp_path):
    source = tmp_path / "media" / "talk.mov"
    source.parent.mkdir()
    source.write_bytes(b"raw")
    destination = tmp_path / "exports" / "deep" / "talk.mp4"

    pipeline = make_pipeline(
        {
            "operation": "compress",
            "input_mode": "path",
            "input_path": str(source),
            "output_mode": "file",
            "output_path": str(destination),
        },
        engine,
        temp_manager,
    )

    result = pipeline.run([WorkItem(json={"id": 1})])[0]

    assert engine.plans[0].input_paths == [str(source.resolve())]
    assert destination.read_bytes() == b"encoded"
    assert result.json == {"id": 1, "output_path": str(destination), "success": True}
    assert result.binary == {}
    # The source is not a temp file and is left alone.
    assert source.exists()
    assert list(temp_dir.iterdir()) == []


def test_missing_input_path_is_not_found(engine, temp_manager, tmp_path):
    pipeline = make_pipeline(
        {"operation": "convert", "input_mode": "path", "input_path": str(tmp_path / "nope.mov")},
        engine,
        temp_manager,
    )

    with pytest.raises(NotFoundException):
        pipeline.run([WorkItem()])
    assert engine.plans == []


def test_merge_writes_both_inputs_in_order(engine, temp_manager, temp_dir):
    pipeline = make_pipeline({"operation": "merge"}, engine, temp_manager)
    item = WorkItem(
        binary={
            "audio": BinaryPayload(b"aaa", "voice.m4a"),
            "video": BinaryPayload(b"vvv", "scene.mp4"),
        }
    )

    result = pipeline.run([item])[0]

    video_path, audio_path = engine.plans[0].input_paths
    assert video_path.endswith(".mp4")
    assert audio_path.endswith(".m4a")
    assert result.binary["data"].file_name.endswith(".mp4")
    assert list(temp_dir.iterdir()) == []


def test_merge_missing_audio_field_fails_before_any_temp_file(engine, temp_manager, temp_dir):
    pipeline = make_pipeline({"operation": "merge"}, engine, temp_manager)
    item = WorkItem(binary={"video": BinaryPayload(b"vvv", "scene.mp4")})

    with pytest.raises(ValidationException, match="audio"):
        pipeline.run([item])

    assert list(temp_dir.iterdir()) == []
    assert engine.plans == []


def test_missing_binary_field_stops_the_batch_without_continue(engine, temp_manager):
    pipeline = make_pipeline({"operation": "convert"}, engine, temp_manager)

    with pytest.raises(ValidationException, match='binary data with name "data"'):
        pipeline.run([make_item(), make_item(field="other"), make_item()])

    # Item 0 ran, item 2 never did.
    assert len(engine.plans) == 1


def test_continue_on_fail_records_errors_in_place(engine, temp_manager, temp_dir):
    pipeline = make_pipeline(
        {"operation": "compress"},
        engine,
        temp_manager,
        continue_on_fail=True,
        per_item=[{}, {"crf": 99}, {}],
    )

    results = pipeline.run([make_item(title="a"), make_item(title="b"), make_item(title="c")])

    assert len(results) == 3
    assert results[0].json == {"title": "a"}
    assert "crf" in results[1].json["error"]
    assert results[1].binary == {}
    assert results[2].json == {"title": "c"}
    assert len(engine.plans) == 2
    assert list(temp_dir.iterdir()) == []


def test_execution_failure_is_wrapped_and_temp_files_released(temp_manager, temp_dir):
    engine = FakeEngine(fail=True)
    pipeline = make_pipeline({"operation": "convert"}, engine, temp_manager)

    with pytest.raises(ExecutionException) as exc_info:
        pipeline.run([make_item()])

    assert str(exc_info.value).startswith("Item 0: FFmpeg processing failed: ffmpeg exited with code 1")
    assert list(temp_dir.iterdir()) == []


def test_execution_failure_with_continue_on_fail(temp_manager, temp_dir):
    engine = FakeEngine(fail=True)
    pipeline = make_pipeline({"operation": "convert"}, engine, temp_manager, continue_on_fail=True)

    results = pipeline.run([make_item(), make_item()])

    assert [list(r.json) for r in results] == [["error"], ["error"]]
    assert "FFmpeg processing failed" in results[0].json["error"]
    assert list(temp_dir.iterdir()) == []


def test_metadata_returns_probe_summary_and_passes_binary_through(engine, temp_manager, temp_dir):
    pipeline = make_pipeline({"operation": "metadata"}, engine, temp_manager)
    item = make_item(title="ignored")

    result = pipeline.run([item])[0]

    assert engine.plans == []
    assert len(engine.probed) == 1
    assert result.json["format_name"] == "mov,mp4,m4a,3gp,3g2,mj2"
    assert result.json["duration"] == 12.5
    assert result.json["bitrate"] == 800000
    assert len(result.json["streams"]) == 2
    assert result.binary["data"] is item.binary["data"]
    assert list(temp_dir.iterdir()) == []


def test_concatenate_after_the_first_item_is_rejected(engine, temp_manager):
    pipeline = make_pipeline(
        {"operation": "convert"},
        engine,
        temp_manager,
        continue_on_fail=True,
        per_item=[{}, {"operation": "concatenate"}],
    )

    results = pipeline.run([make_item(), make_item()])

    assert "data" in results[0].binary
    assert "first item" in results[1].json["error"]


def test_empty_batch(engine, temp_manager):
    assert make_pipeline({"operation": "convert"}, engine, temp_manager).run([]) == []
