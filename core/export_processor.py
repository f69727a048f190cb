import time
import traceback
import logging
from typing import Any, Dict, Callable, List, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from core.exceptions import EditorError, SaveFailed
from core.overlay_surface import OverlaySurface
from models.DocumentHandle import DocumentHandle
from models.ExportResult import ExportResult
from services.FlattenExportService import FlattenExportService


logger = logging.getLogger(__name__)


class ExportProcessor(QObject):
    """Runs the flatten & export pipeline step by step with timing metrics.

    Every invocation is independent: nothing guards against a second export
    starting while one is running, and nothing is retried.
    """

    step_completed = pyqtSignal(str, dict)         # step_name, metrics
    step_failed = pyqtSignal(str, str, dict)       # step_name, error, context
    export_finished = pyqtSignal(object)           # ExportResult

    def __init__(self, service: FlattenExportService = None):
        super().__init__()
        self.service = service or FlattenExportService()
        self.step_metrics: Dict[str, Dict[str, Any]] = {}
        self.completed_steps: List[str] = []
        self.last_successful_step: Optional[str] = None

    def _measure_step(self, step_name: str, func: Callable, *args, **kwargs) -> Any:
        """Run step, collect timing metrics."""
        start_time = time.perf_counter()
        context = {'last_successful': self.last_successful_step}
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self.step_failed.emit(step_name, str(e), context)
            logger.debug("Export step %s failed | Context: %s", step_name, context)
            raise
        metrics = {
            'time_ms': (time.perf_counter() - start_time) * 1000,
            'success': True
        }
        if isinstance(result, (bytes, bytearray)):
            metrics['bytes'] = len(result)
        self.step_metrics[step_name] = metrics
        self.completed_steps.append(step_name)
        self.last_successful_step = step_name
        self.step_completed.emit(step_name, metrics)
        return result

    def run(self, handle: Optional[DocumentHandle], page_index: int,
            surface: Optional[OverlaySurface]) -> ExportResult:
        """Execute all steps; raises the first pipeline error."""
        self.step_metrics = {}
        self.completed_steps = []
        self.last_successful_step = None

        self._measure_step('check_preconditions', self.service.check_preconditions, handle, surface)
        document = self._measure_step('parse_document', self.service.parse_document, handle)
        try:
            page = self._measure_step('resolve_page', self.service.resolve_page, document, page_index)
            image_data = self._measure_step('rasterize_surface', self.service.rasterize_surface, surface)
            self._measure_step('embed_image', self.service.embed_image, page, image_data)
            data = self._measure_step('serialize', self.service.serialize, document)
        finally:
            document.close()
        output_path = self._measure_step('deliver', self.service.deliver, data)
        return ExportResult(
            success=True,
            output_path=output_path,
            page_index=page_index,
            byte_count=len(data),
        )

    def flatten_and_export(self, handle: Optional[DocumentHandle], page_index: int,
                           surface: Optional[OverlaySurface]) -> ExportResult:
        """Run the pipeline and convert any failure into a result; never raises."""
        try:
            result = self.run(handle, page_index, surface)
            logger.info("Exported page %d overlay to %s", page_index, result.output_path)
        except EditorError as e:
            logger.error("Export failed: %s", e)
            result = ExportResult(success=False, error=e, page_index=page_index)
        except Exception as e:
            logger.error("Export failed unexpectedly:\n%s", traceback.format_exc())
            result = ExportResult(success=False, error=SaveFailed(str(e)), page_index=page_index)
        self.export_finished.emit(result)
        return result
