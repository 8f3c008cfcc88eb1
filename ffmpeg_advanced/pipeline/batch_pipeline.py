"""
The batch pipeline: runs every item of a batch through the operation lifecycle.

For each item, in order: parse and validate the operation, check that the
item's inputs are actually there, write binary inputs to temp files, build the
command plan, execute it, assemble the output record and release the item's
temp files. Items are processed strictly one after another.

A failure anywhere in that sequence either stops the batch (the exception
propagates) or, with `continue_on_fail`, becomes an `{"error": message}` record
in the output at that item's position while the loop moves on.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.common import ERROR_KEY, TEMP_KIND_INPUT, TEMP_KIND_OUTPUT
from ..domain.exceptions import FFmpegAdvancedException, NotFoundException, ValidationException
from ..domain.items import BinaryStore, InMemoryBinaryStore, NodeParameters, WorkItem
from ..domain.operations import (
    InputSpec,
    OperationKind,
    parse_input_spec,
    parse_operation,
    parse_output_disposition,
)
from ..services.execution_service import ExecutionEngine
from ..services.plan_builder import build_plan
from ..services.result_service import ResultAssembler
from ..services.temp_service import TempResourceManager, TempScope
from ..utils.format_utils import format_timedelta
from .concat_pipeline import ConcatenationController


class BatchPipeline:
    """
    Processes a batch of work items.

    Args:
        parameters: Batch parameters with optional per-item overrides.
        engine: The FFmpeg execution engine; a default one is created if omitted.
        temp_manager: The temp file manager; uses the configured temp dir if omitted.
        binary_store: Reads and prepares payload bytes.
        continue_on_fail: Turn per-item failures into error records instead of
                          stopping the batch.
    """

    def __init__(
        self,
        parameters: NodeParameters,
        engine: Optional[ExecutionEngine] = None,
        temp_manager: Optional[TempResourceManager] = None,
        binary_store: Optional[BinaryStore] = None,
        continue_on_fail: bool = False,
    ):
        self.parameters = parameters
        self.engine = engine or ExecutionEngine()
        self.temp_manager = temp_manager or TempResourceManager()
        self.binary_store = binary_store or InMemoryBinaryStore()
        self.assembler = ResultAssembler(self.binary_store)
        self.continue_on_fail = continue_on_fail
        self.concatenation = ConcatenationController(
            self.engine,
            self.temp_manager,
            self.assembler,
            self.binary_store,
            continue_on_fail=continue_on_fail,
        )

    def run(self, items: List[WorkItem]) -> List[WorkItem]:
        """
        Runs the batch and returns the output items.

        A batch whose first item requests concatenation is handed to the
        ConcatenationController as a whole; otherwise every item produces
        exactly one output item (or error record).
        """
        started_at = datetime.now()

        if ConcatenationController.detects(items, self.parameters):
            results = self.concatenation.run(items, self.parameters)
            logger.success(f"Concatenation finished in {format_timedelta(datetime.now() - started_at)}")
            return results

        results: List[WorkItem] = []
        failures = 0
        for index, item in enumerate(items):
            try:
                results.append(self.process_item(index, item))
            except Exception as e:
                if not self.continue_on_fail:
                    raise
                failures += 1
                if isinstance(e, FFmpegAdvancedException):
                    logger.error(f"Item {index} failed: {e}")
                else:
                    logger.exception(f"Item {index} failed with an unexpected error: {e}")
                results.append(WorkItem(json={ERROR_KEY: str(e)}))

        logger.success(
            f"Processed {len(items)} item(s), {failures} failed, in {format_timedelta(datetime.now() - started_at)}"
        )
        return results

    def process_item(self, index: int, item: WorkItem) -> WorkItem:
        """
        Runs one item through the full lifecycle.

        Everything that can be checked without touching the filesystem is
        checked before the item's temp scope is opened, so a validation failure
        leaves the temp directory untouched.

        Raises:
            ValidationException: Malformed parameters or a missing binary field.
            NotFoundException: An input path does not exist.
            ExecutionException: FFmpeg or ffprobe failed.
            MediaIOException: A temp write, read or output copy failed.
        """
        params = self.parameters.for_item(index)
        operation = parse_operation(params, index)
        if operation.kind is OperationKind.CONCATENATE:
            raise ValidationException(
                f"Item {index}: concatenate is a batch operation and must be requested by the first item"
            )
        input_spec = parse_input_spec(operation, params, index)
        disposition = None
        if operation.kind is not OperationKind.METADATA:
            disposition = parse_output_disposition(params, index)
        self._check_inputs(index, item, input_spec)

        logger.info(f"Item {index}: {operation.kind.value}")
        with self.temp_manager.scope(f"item {index}") as temps:
            input_paths = self._materialize_inputs(item, input_spec, temps)

            if operation.kind is OperationKind.METADATA:
                probe = self.engine.probe(Path(input_paths[0]))
                return self.assembler.metadata(item, probe)

            plan = build_plan(operation, input_paths)
            output = temps.acquire(TEMP_KIND_OUTPUT, f".{plan.extension}")
            self.engine.execute(plan, output.path).raise_for_failure(f"Item {index}")
            return self.assembler.assemble(item, output.path, plan.extension, disposition)

    @staticmethod
    def _check_inputs(index: int, item: WorkItem, input_spec: InputSpec):
        for role, source in input_spec.sources:
            if input_spec.is_binary:
                if not item.has_binary(source):
                    raise ValidationException(
                        f'Item {index} does not contain binary data with name "{source}" ({role} input)'
                    )
            elif not Path(source).expanduser().is_file():
                raise NotFoundException(f"Item {index}: {role} input file not found: {source}")

    def _materialize_inputs(self, item: WorkItem, input_spec: InputSpec, temps: TempScope) -> List[str]:
        """Returns one path per input role; binary payloads are written to temp files first."""
        paths = []
        for _role, source in input_spec.sources:
            if not input_spec.is_binary:
                paths.append(str(Path(source).expanduser().resolve()))
                continue
            payload = item.binary[source]
            suffix = f".{payload.file_extension}" if payload.file_extension else ""
            temp_input = temps.write_bytes(TEMP_KIND_INPUT, self.binary_store.get_bytes(item, source), suffix)
            paths.append(str(temp_input.path))
        return paths
