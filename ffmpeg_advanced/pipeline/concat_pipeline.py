"""
The aggregation controller: runs concatenation over a whole batch.

Concatenation is the one operation that does not work item by item. When the
first item of a batch asks for it, the controller takes over the run: it
gathers every input (the binary payloads of all items, or an explicit path
list), builds a single plan, runs it once and returns a single output item.
The per-item loop is skipped entirely.
"""

from pathlib import Path
from typing import List, Sequence

from loguru import logger

from ..config.common import DEFAULT_BINARY_PROPERTY, ERROR_KEY, TEMP_KIND_INPUT, TEMP_KIND_MANIFEST, TEMP_KIND_OUTPUT
from ..config.operations import CONCAT_SOURCE_PATHS
from ..domain.exceptions import FFmpegAdvancedException, NotFoundException, ValidationException
from ..domain.items import BinaryStore, NodeParameters, WorkItem
from ..domain.operations import (
    ConcatenateOperation,
    OperationKind,
    parse_operation,
    parse_operation_kind,
    parse_output_disposition,
)
from ..services.execution_service import ExecutionEngine
from ..services.plan_builder import build_plan, render_concat_manifest
from ..services.result_service import ResultAssembler
from ..services.temp_service import TempResourceManager, TempScope


class ConcatenationController:
    """
    Owns a batch whose first item requests `concatenate`.

    Args:
        engine: Runs the single concatenation command.
        temp_manager: Allocates the temp inputs, manifest and output.
        assembler: Produces the output record.
        binary_store: Reads payload bytes from the items.
        continue_on_fail: When True, missing paths are skipped, a batch with no
                          usable inputs is returned unchanged and any other
                          failure becomes a single error record.
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        temp_manager: TempResourceManager,
        assembler: ResultAssembler,
        binary_store: BinaryStore,
        continue_on_fail: bool = False,
    ):
        self.engine = engine
        self.temp_manager = temp_manager
        self.assembler = assembler
        self.binary_store = binary_store
        self.continue_on_fail = continue_on_fail

    @staticmethod
    def detects(items: Sequence[WorkItem], parameters: NodeParameters) -> bool:
        """True when the batch is non-empty and item 0 requests concatenation."""
        if not items:
            return False
        try:
            kind = parse_operation_kind(parameters.for_item(0), 0)
        except ValidationException:
            # An invalid operation name is reported by the per-item loop.
            return False
        return kind is OperationKind.CONCATENATE

    def run(self, items: List[WorkItem], parameters: NodeParameters) -> List[WorkItem]:
        try:
            return self._run(items, parameters)
        except FFmpegAdvancedException as e:
            if not self.continue_on_fail:
                raise
            logger.error(f"Concatenation failed: {e}")
            return [WorkItem(json={ERROR_KEY: str(e)})]

    def _run(self, items: List[WorkItem], parameters: NodeParameters) -> List[WorkItem]:
        params = parameters.for_item(0)
        operation = parse_operation(params, 0)
        disposition = parse_output_disposition(params, 0)
        binary_property = params.get("binary_property") or DEFAULT_BINARY_PROPERTY

        logger.info(
            f"Concatenating batch of {len(items)} item(s): strategy={operation.strategy}, source={operation.source}"
        )

        with self.temp_manager.scope("concatenate") as temps:
            if operation.source == CONCAT_SOURCE_PATHS:
                input_paths = self._resolve_paths(operation)
            else:
                input_paths = self._write_payloads(items, binary_property, temps)

            if not input_paths:
                message = "No input files found to concatenate."
                if self.continue_on_fail:
                    logger.warning(f"{message} Returning the batch unchanged.")
                    return list(items)
                raise NotFoundException(message)

            manifest_path = None
            if not operation.reencode:
                manifest = temps.write_text(TEMP_KIND_MANIFEST, render_concat_manifest(input_paths), ".txt")
                manifest_path = str(manifest.path)
                logger.debug(f"Wrote concat list {manifest.path.name} with {len(input_paths)} entries")

            plan = build_plan(operation, input_paths, manifest_path=manifest_path)
            output = temps.acquire(TEMP_KIND_OUTPUT, f".{plan.extension}")
            self.engine.execute(plan, output.path).raise_for_failure("Concatenate")

            summary = WorkItem(
                json={
                    "operation": operation.kind.value,
                    "strategy": operation.strategy,
                    "input_count": len(input_paths),
                }
            )
            return [self.assembler.assemble(summary, output.path, plan.extension, disposition)]

    def _resolve_paths(self, operation: ConcatenateOperation) -> List[str]:
        resolved = []
        for raw_path in operation.input_paths:
            path = Path(raw_path).expanduser()
            if path.is_file():
                resolved.append(str(path.resolve()))
                continue
            message = f"Input file not found: {raw_path}"
            if not self.continue_on_fail:
                raise NotFoundException(message)
            logger.warning(f"{message}; skipping.")
        return resolved

    def _write_payloads(self, items: Sequence[WorkItem], binary_property: str, temps: TempScope) -> List[str]:
        paths = []
        for index, item in enumerate(items):
            if not item.has_binary(binary_property):
                logger.debug(f"Item {index} has no binary field '{binary_property}'; not part of the concatenation.")
                continue
            payload = item.binary[binary_property]
            suffix = f".{payload.file_extension}" if payload.file_extension else ""
            temp_input = temps.write_bytes(TEMP_KIND_INPUT, self.binary_store.get_bytes(item, binary_property), suffix)
            paths.append(str(temp_input.path))
        return paths
