import html
import time
from typing import Dict, Any, Optional
from PyQt6.QtWidgets import (
    QDockWidget,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)
from PyQt6.QtGui import QFont

from models.ExportResult import ExportResult

class ExportLogWidget(QDockWidget):
    """Dock listing every flatten & export run, one line per pipeline step."""

    def __init__(self, parent=None):
        super().__init__("Export Log", parent)
        self.log_widget = QTextEdit()
        self.log_widget.setReadOnly(True)
        self.log_widget.setFont(QFont("Courier", 9))
        self.status_label = QLabel("No export yet")
        clear_button = QPushButton("Clear")
        clear_button.clicked.connect(self.clear)
        self._run_open = False

        header = QHBoxLayout()
        header.addWidget(self.status_label)
        header.addStretch()
        header.addWidget(clear_button)

        container = QWidget()
        layout = QVBoxLayout(container)
        layout.addLayout(header)
        layout.addWidget(self.log_widget)
        self.setWidget(container)

    def append_log(self, message: str, color: Optional[str] = None) -> None:
        """Add a timestamped line."""
        line = html.escape(f"[{time.strftime('%H:%M:%S')}] {message}")
        if color:
            line = f'<span style="color:{color}">{line}</span>'
        self.log_widget.append(line)

    def append_metrics(self, step_name: str, metrics: Dict[str, Any]) -> None:
        """Record a completed step with its duration and output size."""
        self._start_run()
        size = f", {metrics['bytes']} bytes" if 'bytes' in metrics else ""
        self.append_log(f"  ✓ {step_name:<20} {metrics['time_ms']:8.2f} ms{size}")

    def append_error(self, step_name: str, error: str, context: Dict[str, Any] = None) -> None:
        """Record the step that ended the run."""
        self._start_run()
        after = (context or {}).get('last_successful')
        self.append_log(f"  ✗ {step_name}: {error}", color="#c0392b")
        if after:
            self.append_log(f"    after {after}", color="#c0392b")

    def append_result(self, result: ExportResult) -> None:
        """Close the current run with its outcome."""
        self._start_run()
        if result.success:
            self.append_log(f"Saved: {result.message}", color="#27ae60")
            self.status_label.setText(f"Last export: page {result.page_index + 1} saved")
        else:
            self.append_log(f"Not saved: {result.message}", color="#c0392b")
            self.status_label.setText("Last export failed")
        self._run_open = False

    def clear(self) -> None:
        self.log_widget.clear()
        self.status_label.setText("No export yet")
        self._run_open = False

    def _start_run(self) -> None:
        if not self._run_open:
            self._run_open = True
            self.append_log("Export started")
