"""Desktop viewer for the live filter pipeline.

A zero-interval timer runs one pipeline tick per event-loop pass, so frames
are produced as fast as the display can take them. The window is the frame
sink and its widgets are the polled controls.
"""

from __future__ import annotations

import sys

import cv2
import numpy as np
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QHBoxLayout,
    QLabel,
    QSizePolicy,
    QSlider,
    QSpacerItem,
    QVBoxLayout,
    QWidget,
)

from core.config import ensure_directories, get_pipeline_config, is_debug_overlay_enabled
from core.filters.kinds import FilterKind
from core.logging.audit import audit_event
from core.logging.logger import get_logger
from core.pipeline.loop import FramePipeline
from core.pipeline.service import build_pipeline


class FilterWindow(QWidget):
    def __init__(self, overlay: bool = False) -> None:
        super().__init__()
        self.setWindowTitle("FrameFX")
        self._overlay = overlay
        self._pipeline: FramePipeline | None = None
        self._timer = QTimer(self)
        self._timer.setInterval(0)
        self._timer.timeout.connect(self._on_tick)
        self._build_ui()

    def _build_ui(self) -> None:
        self.setStyleSheet(
            """
            QWidget { background-color: #151515; color: #e8e8e8; }
            QLabel#stats { color: #8a8a8a; font-size: 11px; }
            QLabel#video { background-color: #000000; }
            """
        )
        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)

        self.video = QLabel()
        self.video.setObjectName("video")
        self.video.setAlignment(Qt.AlignCenter)
        self.video.setMinimumSize(640, 480)
        layout.addWidget(self.video)

        controls = QHBoxLayout()
        self.filter_box = QComboBox()
        for kind in FilterKind:
            self.filter_box.addItem(kind.label, kind.value)
        controls.addWidget(QLabel("Filter"))
        controls.addWidget(self.filter_box)

        self.slider = QSlider(Qt.Horizontal)
        self.slider.setRange(0, 100)
        self.intensity_label = QLabel()
        self.slider.valueChanged.connect(lambda value: self.intensity_label.setText(str(value)))
        controls.addWidget(QLabel("Intensity"))
        controls.addWidget(self.slider)
        controls.addWidget(self.intensity_label)

        controls.addItem(QSpacerItem(20, 10, QSizePolicy.Expanding, QSizePolicy.Minimum))
        self.fps_label = QLabel("FPS: --")
        self.fps_label.setObjectName("stats")
        self.memory_label = QLabel("-- MB")
        self.memory_label.setObjectName("stats")
        controls.addWidget(self.fps_label)
        controls.addWidget(self.memory_label)
        layout.addLayout(controls)

    def attach(self, pipeline: FramePipeline) -> None:
        self._pipeline = pipeline
        snapshot = pipeline.controls.snapshot()
        self.filter_box.setCurrentIndex(self.filter_box.findData(snapshot.filter.value))
        self.slider.setValue(snapshot.intensity)
        self.intensity_label.setText(str(snapshot.intensity))
        self.filter_box.currentIndexChanged.connect(
            lambda _index: pipeline.controls.set_filter(self.filter_box.currentData())
        )
        self.slider.valueChanged.connect(pipeline.controls.set_intensity)
        self._timer.start()

    def present(self, frame: np.ndarray) -> None:
        if self._overlay and self._pipeline is not None:
            frame = frame.copy()
            for face in self._pipeline.engine.throttler.cache.faces:
                cv2.rectangle(frame, (face.x, face.y), (face.x + face.w, face.y + face.h), (0, 255, 0, 255), 1)
        height, width = frame.shape[:2]
        image = QImage(frame.data, width, height, frame.strides[0], QImage.Format_RGBA8888).copy()
        self.video.setPixmap(QPixmap.fromImage(image))

    def _on_tick(self) -> None:
        if self._pipeline is None:
            return
        result = self._pipeline.tick()
        if result.halted:
            self._timer.stop()
            self.fps_label.setText("Camera unavailable")
            return
        stats = self._pipeline.telemetry.latest
        if stats is not None:
            self.fps_label.setText(f"FPS: {stats.fps:.1f}")
            self.memory_label.setText(f"{stats.memory_used_mb:.1f}/{stats.memory_total_mb:.0f} MB")

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._timer.stop()
        if self._pipeline is not None:
            self._pipeline.close()
            audit_event("pipeline.stop", source=self._pipeline.source.name, ticks=self._pipeline.ticks)
        super().closeEvent(event)


def main() -> int:
    ensure_directories()
    logger = get_logger()
    app = QApplication(sys.argv)
    window = FilterWindow(overlay=is_debug_overlay_enabled())
    config = get_pipeline_config()
    pipeline = build_pipeline(config, sink=window)
    logger.info("Starting viewer with %s source at %sx%s", pipeline.source.name, config.width, config.height)
    audit_event("pipeline.start", source=pipeline.source.name, viewer="desktop")
    window.attach(pipeline)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
