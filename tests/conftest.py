from pathlib import Path

import pytest

from ffmpeg_advanced.domain.items import BinaryPayload, WorkItem
from ffmpeg_advanced.services.execution_service import ExecutionResult
from ffmpeg_advanced.services.temp_service import TempResourceManager


class FakeEngine:
    """Stands in for ExecutionEngine: records plans and writes a fake output file."""

    def __init__(self, output_bytes: bytes = b"encoded", fail: bool = False, probe_result=None):
        self.output_bytes = output_bytes
        self.fail = fail
        self.probe_result = probe_result or {
            "format": {"format_name": "mov,mp4,m4a,3gp,3g2,mj2", "duration": "12.5", "bit_rate": "800000"},
            "streams": [{"codec_type": "video"}, {"codec_type": "audio"}],
        }
        self.plans = []
        self.manifests = []
        self.manifest_inputs = []
        self.existing_inputs = []
        self.probed = []

    def execute(self, plan, output_path):
        self.plans.append(plan)
        self.existing_inputs.append([Path(p).exists() for p in plan.input_paths])
        for plan_input in plan.inputs:
            if "concat" in plan_input.options:
                self.manifests.append(Path(plan_input.path).read_text(encoding="utf-8"))
                listed = [line[len("file '"):-1] for line in self.manifests[-1].splitlines()]
                self.manifest_inputs.append([Path(p).read_bytes() for p in listed])
        if self.fail:
            return ExecutionResult(succeeded=False, message="ffmpeg exited with code 1: Invalid data found", returncode=1)
        Path(output_path).write_bytes(self.output_bytes)
        return ExecutionResult(succeeded=True, output_path=Path(output_path), returncode=0)

    def probe(self, path):
        self.probed.append(Path(path))
        return self.probe_result


@pytest.fixture
def temp_dir(tmp_path):
    directory = tmp_path / "temp"
    directory.mkdir()
    return directory


@pytest.fixture
def temp_manager(temp_dir):
    return TempResourceManager(temp_dir)


@pytest.fixture
def engine():
    return FakeEngine()


def make_item(field: str = "data", file_name: str = "clip.mp4", data: bytes = b"media", **json) -> WorkItem:
    return WorkItem(json=json, binary={field: BinaryPayload(data, file_name)})
