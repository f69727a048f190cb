#!/usr/bin/env python3
"""
PDF Overlay Redactor
Main entry point: draw redaction blocks and labels over a PDF page and flatten them on save.
"""

import logging
import sys
from PyQt6.QtWidgets import QApplication
from PyQt6.QtCore import Qt, qInstallMessageHandler, QtMsgType, QMessageLogContext
from ui.main_window import MainWindow

QT_LOG_LEVELS = {
    QtMsgType.QtDebugMsg: logging.DEBUG,
    QtMsgType.QtInfoMsg: logging.INFO,
    QtMsgType.QtWarningMsg: logging.WARNING,
    QtMsgType.QtCriticalMsg: logging.ERROR,
    QtMsgType.QtFatalMsg: logging.CRITICAL,
}


def configure_logging(level: int = logging.DEBUG):
    """Root logger for the app packages; third-party image libraries stay quiet."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s"
    )
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("fitz").setLevel(logging.WARNING)
    for package in ("core", "services", "ui"):
        logging.getLogger(package).setLevel(level)


def excepthook(exc_type, exc_value, exc_traceback):
    logging.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))
    sys.__excepthook__(exc_type, exc_value, exc_traceback)


def qt_message_handler(msg_type: QtMsgType, context: QMessageLogContext, message: str):
    """Forward Qt's own diagnostics into the logging tree."""
    level = QT_LOG_LEVELS.get(msg_type, logging.ERROR)
    logging.getLogger("qt").log(level, f"{message} ({context.file}:{context.line})")


def main():
    """Initialize and run the redactor application."""
    configure_logging()
    sys.excepthook = excepthook
    qInstallMessageHandler(qt_message_handler)
    logging.debug("main: Starting application initialization")
    QApplication.setHighDpiScaleFactorRoundingPolicy(Qt.HighDpiScaleFactorRoundingPolicy.PassThrough)

    app = QApplication(sys.argv)
    app.setApplicationName("PDF Overlay Redactor")
    app.setApplicationVersion("1.0.0")
    app.setStyle('Fusion')

    file_path = sys.argv[1] if len(sys.argv) > 1 else None
    window = MainWindow(file_path)
    window.show()

    sys.exit(app.exec())

if __name__ == "__main__":
    main()
