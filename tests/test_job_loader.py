import pytest
import yaml

from ffmpeg_advanced.cli import get_args
from ffmpeg_advanced.domain.exceptions import NotFoundException, ValidationException
from ffmpeg_advanced.domain.items import BinaryPayload, WorkItem
from ffmpeg_advanced.services.job_loader import load_job, write_results
from ffmpeg_advanced.services.logging_service import ErrorLog, SuccessLog


def write_job(tmp_path, job):
    job_path = tmp_path / "job.yaml"
    job_path.write_text(yaml.safe_dump(job), encoding="utf-8")
    return job_path


def test_load_job_reads_items_relative_to_the_job_file(tmp_path):
    clips = tmp_path / "clips"
    clips.mkdir()
    (clips / "intro.mov").write_bytes(b"intro")
    job_path = write_job(
        tmp_path,
        {
            "parameters": {"operation": "convert", "format": "webm"},
            "continue_on_fail": True,
            "items": [
                {"json": {"title": "intro"}, "binary": {"data": "clips/intro.mov"}},
                {"json": {"title": "meta only"}, "parameters": {"operation": "metadata"}},
            ],
        },
    )

    job = load_job(job_path)

    assert job.continue_on_fail is True
    assert len(job.items) == 2
    assert job.items[0].json == {"title": "intro"}
    assert job.items[0].binary["data"].data == b"intro"
    assert job.items[0].binary["data"].file_name == "intro.mov"
    assert job.items[1].binary == {}
    assert job.parameters.get("operation", 0) == "convert"
    assert job.parameters.get("operation", 1) == "metadata"
    assert job.parameters.get("format", 1) == "webm"


def test_missing_binary_file(tmp_path):
    job_path = write_job(tmp_path, {"items": [{"binary": {"data": "nope.mp4"}}]})

    with pytest.raises(NotFoundException, match="nope.mp4"):
        load_job(job_path)


def test_missing_job_file(tmp_path):
    with pytest.raises(NotFoundException):
        load_job(tmp_path / "absent.yaml")


@pytest.mark.parametrize("content", ["items: [1, 2", "- just\n- a list\n", "items: {a: 1}\n"])
def test_malformed_job(tmp_path, content):
    job_path = tmp_path / "job.yaml"
    job_path.write_text(content, encoding="utf-8")

    with pytest.raises(ValidationException):
        load_job(job_path)


def test_write_results_and_report(tmp_path):
    output_dir = tmp_path / "out"
    results = [
        WorkItem(json={"title": "a"}, binary={"data": BinaryPayload(b"video", "clip.mp4")}),
        WorkItem(json={"error": "Item 1: FFmpeg processing failed: boom"}),
    ]

    entries = write_results(results, output_dir)
    report = SuccessLog(output_dir)
    for entry in entries:
        report.write(entry)

    assert (output_dir / "clip.mp4").read_bytes() == b"video"
    assert [e["status"] for e in entries] == ["success", "error"]

    saved = report.read()
    assert [e["index"] for e in saved] == [1, 2]
    assert saved[0]["files"] == {"data": str(output_dir / "clip.mp4")}
    assert saved[1]["json"]["error"].endswith("boom")
    assert (output_dir / "run_report.yaml").is_file()


def test_error_log_appends_records(tmp_path):
    log = ErrorLog(tmp_path / "logs")
    log.write("first", "detail")
    log.write("second")

    content = log.log_file_path.read_text(encoding="utf-8")
    assert content.count(ErrorLog.linesep_marker) == 2
    assert content.index("first") < content.index("second")


def test_cli_creates_directories(tmp_path):
    args = get_args(
        [
            "--job", "job.yaml",
            "--output-dir", str(tmp_path / "out"),
            "--temp-work-dir", str(tmp_path / "ram" / "tmp"),
            "--continue-on-fail",
        ]
    )

    assert args.output_dir.is_dir()
    assert args.temp_work_dir.is_dir()
    assert args.error_log_dir is None
    assert args.continue_on_fail is True
    assert args.log_level == "INFO"


def test_write_results_does_not_overwrite_repeated_names(tmp_path):
    output_dir = tmp_path / "out"
    results = [
        WorkItem(json={"n": 1}, binary={"data": BinaryPayload(b"first", "joined.mp4")}),
        WorkItem(json={"n": 2}, binary={"data": BinaryPayload(b"second", "joined.mp4")}),
        WorkItem(json={"n": 3}, binary={"data": BinaryPayload(b"third", "joined.mp4")}),
    ]

    entries = write_results(results, output_dir)

    assert [e["files"]["data"] for e in entries] == [
        str(output_dir / "joined.mp4"),
        str(output_dir / "joined_1.mp4"),
        str(output_dir / "joined_2.mp4"),
    ]
    assert (output_dir / "joined.mp4").read_bytes() == b"first"
    assert (output_dir / "joined_1.mp4").read_bytes() == b"second"
    assert (output_dir / "joined_2.mp4").read_bytes() == b"third"
