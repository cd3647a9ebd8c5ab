"""Control panel window.

A deliberately small PyQt6 front end: one row per tool with its status line,
a start/stop toggle and calibration controls, plus a few buttons to edit
macro profiles. All state is polled from the tools on a QTimer; the panel
never blocks on a worker thread.
"""
from __future__ import annotations

import logging
from typing import Dict

from PyQt6.QtCore import QObject, Qt, QTimer, pyqtSignal
from PyQt6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFrame,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QMainWindow,
    QPlainTextEdit,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from ..core.state import RunOutcome
from ..macro.actions import ClickAction, ClickMethod, DelayAction, MouseButton, OcrSearchAction, TypeTextAction
from ..macro.ocr_parser import Comparison
from ..tools.base import Tool
from ..tools.custom_macro import CustomMacroTool
from ..tools.ocr_macro import OcrMacroTool
from ..tools.registry import ToolRegistry
from .design_tokens import STATUS_ERROR, STATUS_OK, STYLESHEET, TEXT_DEFAULT

logger = logging.getLogger(__name__)

_COMPARISONS = {">=": Comparison.GREATER_THAN_OR_EQUAL, "=": Comparison.EQUALS, "<=": Comparison.LESS_THAN_OR_EQUAL}

# calibration gestures are sampled on the panel tick; a normal click is ~100 ms
CALIBRATION_TICK_MS = 16
OCR_LINE_CHARS = 80


class FocusComboBox(QComboBox):
    """ComboBox that only responds to wheel events when focused."""

    def wheelEvent(self, e):
        if self.hasFocus():
            super().wheelEvent(e)
        elif e is not None:
            e.ignore()


class PanelSignals(QObject):
    # emitted from the emergency-stop thread; delivered on the GUI thread
    emergency_stopped = pyqtSignal()


class ToolRow(QFrame):
    """Status line and controls for a single tool."""

    def __init__(self, panel: "ControlPanel", tool: Tool):
        super().__init__()
        self.panel = panel
        self.tool = tool
        self.setObjectName("toolRow")
        outer = QVBoxLayout(self)
        outer.setContentsMargins(8, 6, 8, 6)

        head = QHBoxLayout()
        self.name_label = QLabel(tool.name)
        self.name_label.setObjectName("toolName")
        self.btn_run = QPushButton("Start")
        self.btn_run.clicked.connect(self._toggle_run)
        self.btn_log = QPushButton("Log")
        self.btn_log.setCheckable(True)
        self.btn_log.toggled.connect(self._toggle_log)
        head.addWidget(self.name_label, 1)
        head.addWidget(self.btn_log)
        head.addWidget(self.btn_run)
        outer.addLayout(head)

        self.status_label = QLabel(tool.status())
        self.status_label.setWordWrap(True)
        outer.addWidget(self.status_label)

        self.ocr_label = None
        if isinstance(tool, (CustomMacroTool, OcrMacroTool)):
            self.ocr_label = QLabel("")
            self.ocr_label.setWordWrap(True)
            self.ocr_label.setVisible(False)
            outer.addWidget(self.ocr_label)

        self.log_view = QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumHeight(140)
        self.log_view.setVisible(False)
        outer.addWidget(self.log_view)

        cal = QHBoxLayout()
        self.cal_combo = FocusComboBox()
        self.btn_cal = QPushButton("Calibrate")
        self.btn_cal.clicked.connect(self._calibrate)
        cal.addWidget(self.cal_combo, 1)
        cal.addWidget(self.btn_cal)
        outer.addLayout(cal)

        self.chk_overlay = None
        if isinstance(tool, (CustomMacroTool, OcrMacroTool)):
            outer.addLayout(self._profile_buttons())
            p = tool.profile()
            self.chk_overlay = QCheckBox("Show in overlay")
            self.chk_overlay.setChecked(p.show_in_overlay if p is not None else True)
            self.chk_overlay.toggled.connect(self._set_show_in_overlay)
            outer.addWidget(self.chk_overlay)
        self.refresh_targets()

    def _profile_buttons(self) -> QHBoxLayout:
        row = QHBoxLayout()
        for label, handler in (
            ("+Click", self._add_click),
            ("+Type", self._add_type),
            ("+Delay", self._add_delay),
        ):
            b = QPushButton(label)
            b.clicked.connect(handler)
            row.addWidget(b)
        if isinstance(self.tool, CustomMacroTool):
            b = QPushButton("+OCR")
            b.clicked.connect(self._add_ocr)
            row.addWidget(b)
            b = QPushButton("Loops")
            b.clicked.connect(self._edit_loops)
            row.addWidget(b)
        else:
            b = QPushButton("Target")
            b.clicked.connect(self._edit_target)
            row.addWidget(b)
        for label, handler in (("Clear", self._clear_actions), ("Rename", self._rename), ("Delete", self._delete)):
            b = QPushButton(label)
            b.clicked.connect(handler)
            row.addWidget(b)
        return row

    # ---- refresh ----
    def refresh_targets(self) -> None:
        current = self.cal_combo.currentData()
        self.cal_combo.clear()
        for key, target in self.tool.calibration_targets().items():
            self.cal_combo.addItem(target.label, key)
        idx = self.cal_combo.findData(current)
        if idx >= 0:
            self.cal_combo.setCurrentIndex(idx)

    def refresh(self) -> None:
        self.name_label.setText(self.tool.name)
        self.status_label.setText(self.tool.status())
        outcome = self.tool.outcome()
        color = {RunOutcome.MATCHED: STATUS_OK, RunOutcome.COMPLETED: STATUS_OK, RunOutcome.FAILED: STATUS_ERROR}
        self.status_label.setStyleSheet(f"color: {color.get(outcome, TEXT_DEFAULT)};" if outcome else "")
        self.btn_run.setText("Stop" if self.tool.is_running() else "Start")
        self.btn_cal.setText("Cancel" if self.tool.is_calibrating() else "Calibrate")
        if self.ocr_label is not None:
            self.ocr_label.setText(self.ocr_line())
            self.ocr_label.setVisible(bool(self.ocr_label.text()))
        if self.btn_log.isChecked():
            self._refresh_log()

    def ocr_line(self) -> str:
        """Last OCR reading of the current run, flagged when it hit the target."""
        text = self.tool.extra("ocr_text")
        if text is None:
            return ""
        line = " ".join(str(text).split())
        if len(line) > OCR_LINE_CHARS:
            line = line[:OCR_LINE_CHARS - 3] + "..."
        line = f"Last OCR: {line or '(empty)'}"
        if self.tool.extra("match_found"):
            line += "  [MATCH]"
        return line

    def _refresh_log(self) -> None:
        text = "\n".join(self.tool.log())
        if text != self.log_view.toPlainText():
            self.log_view.setPlainText(text)
            bar = self.log_view.verticalScrollBar()
            if bar is not None:
                bar.setValue(bar.maximum())

    def _toggle_log(self, on: bool) -> None:
        self.log_view.setVisible(bool(on))
        if on:
            self._refresh_log()

    # ---- actions ----
    def _toggle_run(self) -> None:
        if self.tool.is_running():
            self.tool.stop()
        else:
            self.panel.registry.start_exclusive(self.tool.tool_id)
        self.panel.refresh()

    def _calibrate(self) -> None:
        if self.tool.is_calibrating():
            self.tool.cancel_calibration()
        else:
            key = self.cal_combo.currentData()
            if key:
                self.tool.begin_calibration(key)
        self.refresh()
        self.panel.update_tick_interval()

    def _actions(self):
        p = self.tool.profile()
        if p is None:
            return None
        return p.settings.reroll_actions if isinstance(self.tool, OcrMacroTool) else p.settings.actions

    def _append(self, action) -> None:
        actions = self._actions()
        if actions is None:
            return
        actions.append(action)
        self.refresh_targets()
        self.panel.registry.store.auto_save()

    def _add_click(self) -> None:
        method, ok = QInputDialog.getItem(self, "Click", "Method:", [m.value for m in ClickMethod], 0, False)
        if not ok:
            return
        button, ok = QInputDialog.getItem(self, "Click", "Button:", [b.value for b in MouseButton], 0, False)
        if ok:
            self._append(ClickAction(method=ClickMethod(method), button=MouseButton(button)))

    def _add_type(self) -> None:
        text, ok = QInputDialog.getText(self, "Type text", "Text:")
        if ok and text:
            self._append(TypeTextAction(text))

    def _add_delay(self) -> None:
        ms, ok = QInputDialog.getInt(self, "Delay", "Milliseconds:", 500, 0, 600000)
        if ok:
            self._append(DelayAction(ms))

    def _ask_target(self, title: str):
        stat, ok = QInputDialog.getText(self, title, "Stat name:")
        if not ok or not stat.strip():
            return None
        value, ok = QInputDialog.getInt(self, title, "Value:", 0, -100000, 100000)
        if not ok:
            return None
        op, ok = QInputDialog.getItem(self, title, "Comparison:", list(_COMPARISONS), 0, False)
        if not ok:
            return None
        return stat.strip(), value, _COMPARISONS[op]

    def _add_ocr(self) -> None:
        target = self._ask_target("OCR search")
        if target is not None:
            stat, value, comparison = target
            self._append(OcrSearchAction(target_stat=stat, target_value=value, comparison=comparison))

    def _edit_target(self) -> None:
        p = self.tool.profile()
        target = self._ask_target("OCR target")
        if p is None or target is None:
            return
        p.settings.target_stat, p.settings.target_value, p.settings.comparison = target
        self.panel.registry.store.auto_save()

    def _edit_loops(self) -> None:
        p = self.tool.profile()
        if p is None:
            return
        count, ok = QInputDialog.getInt(self, "Loops", "Loop count (0 = infinite, 1 = no loop):",
                                        p.settings.loop_count, 0, 100000)
        if not ok:
            return
        p.settings.loop_enabled = count != 1
        p.settings.infinite_loop = count == 0
        p.settings.loop_count = max(1, count)
        self.panel.registry.store.auto_save()

    def _clear_actions(self) -> None:
        actions = self._actions()
        if actions is not None:
            actions.clear()
            self.refresh_targets()
            self.panel.registry.store.auto_save()

    def _rename(self) -> None:
        name, ok = QInputDialog.getText(self, "Rename", "Name:", text=self.tool.name)
        if ok:
            self.panel.registry.rename_profile(self.tool.tool_id, name)

    def _set_show_in_overlay(self, on: bool) -> None:
        p = self.tool.profile()
        if p is None:
            return
        p.show_in_overlay = bool(on)
        self.panel.registry.store.auto_save()
        self.panel.apply_compact()

    def _delete(self) -> None:
        if self.panel.registry.delete_profile(self.tool.tool_id):
            self.panel.rebuild_rows()


class ControlPanel(QMainWindow):
    """Main window; drives registry.tick() from a QTimer."""

    def __init__(self, registry: ToolRegistry, config_manager=None):
        super().__init__()
        self.registry = registry
        self.config_manager = config_manager
        self._rows: Dict[str, ToolRow] = {}
        self._compact = False
        self.repaint_ms = self._cfg_int("repaint_ms", 500)
        self.overlay_repaint_ms = self._cfg_int("overlay_repaint_ms", 100)

        self.setWindowTitle("Cabal Helper")
        self.setStyleSheet(STYLESHEET)
        self.signals = PanelSignals(self)
        self.signals.emergency_stopped.connect(self.refresh)

        card = QWidget()
        card.setObjectName("card")
        self.setCentralWidget(card)
        root = QVBoxLayout(card)

        title = QLabel("CABAL HELPER")
        title.setObjectName("title")
        title.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        root.addWidget(title)

        conn = QHBoxLayout()
        self.conn_label = QLabel("Not connected")
        self.btn_connect = QPushButton("Connect")
        self.btn_connect.clicked.connect(self._toggle_connect)
        conn.addWidget(self.conn_label, 1)
        conn.addWidget(self.btn_connect)
        root.addLayout(conn)

        opts = QHBoxLayout()
        self.chk_compact = QCheckBox("Compact")
        self.chk_compact.toggled.connect(self.set_compact)
        self.chk_on_top = QCheckBox("Always on top")
        self.chk_on_top.setChecked(registry.store.settings.always_on_top)
        self.chk_on_top.toggled.connect(self._set_on_top)
        self.btn_add_macro = QPushButton("Add Macro")
        self.btn_add_macro.clicked.connect(lambda: self._add_profile(self.registry.add_custom_macro))
        self.btn_add_ocr = QPushButton("Add OCR Macro")
        self.btn_add_ocr.clicked.connect(lambda: self._add_profile(self.registry.add_ocr_macro))
        for w in (self.chk_compact, self.chk_on_top, self.btn_add_macro, self.btn_add_ocr):
            opts.addWidget(w)
        root.addLayout(opts)

        self._rows_host = QWidget()
        self._rows_layout = QVBoxLayout(self._rows_host)
        self._rows_layout.setContentsMargins(0, 0, 0, 0)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self._rows_host)
        root.addWidget(scroll, 1)

        self.rebuild_rows()
        self._set_on_top(registry.store.settings.always_on_top)

        self._tick_timer = QTimer(self)
        self._tick_timer.timeout.connect(self._tick)
        self._tick_timer.start(self.repaint_ms)

        self._window_timer = QTimer(self)
        self._window_timer.timeout.connect(self._check_window)
        self._window_timer.start(1000 * self._cfg_int("window_check_seconds", 2))

    def _cfg_int(self, key: str, fallback: int) -> int:
        if self.config_manager is None:
            return fallback
        return self.config_manager.get_int(key, fallback)

    # ---- rows ----
    def rebuild_rows(self) -> None:
        while self._rows_layout.count():
            item = self._rows_layout.takeAt(0)
            widget = item.widget() if item is not None else None
            if widget is not None:
                widget.deleteLater()
        self._rows.clear()
        for tool in self.registry.tools():
            row = ToolRow(self, tool)
            self._rows[tool.tool_id] = row
            self._rows_layout.addWidget(row)
        self._rows_layout.addStretch(1)
        self.apply_compact()

    def _show_in_overlay(self, tool: Tool) -> bool:
        p = tool.profile() if isinstance(tool, (CustomMacroTool, OcrMacroTool)) else None
        return p.show_in_overlay if p is not None else True

    def apply_compact(self) -> None:
        for row in self._rows.values():
            row.setVisible(not self._compact or self._show_in_overlay(row.tool))
            row.btn_cal.setVisible(not self._compact)
            row.cal_combo.setVisible(not self._compact)
            if row.chk_overlay is not None:
                row.chk_overlay.setVisible(not self._compact)

    def set_compact(self, on: bool) -> None:
        """Compact mode shows only overlay-enabled tools and polls faster.

        Only the view changes; running tools keep running.
        """
        self._compact = bool(on)
        self.apply_compact()
        self.update_tick_interval()

    def tick_interval(self) -> int:
        if any(tool.is_calibrating() for tool in self.registry.tools()):
            return CALIBRATION_TICK_MS
        return self.overlay_repaint_ms if self._compact else self.repaint_ms

    def update_tick_interval(self) -> None:
        interval = self.tick_interval()
        if self._tick_timer.interval() != interval:
            self._tick_timer.setInterval(interval)

    def _set_on_top(self, on: bool) -> None:
        self.registry.store.settings.always_on_top = bool(on)
        self.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, bool(on))
        self.show()

    def _add_profile(self, factory) -> None:
        if factory() is None:
            self.conn_label.setText("Profile limit reached")
            return
        self.rebuild_rows()

    # ---- connection ----
    def _toggle_connect(self) -> None:
        if self.registry.window_handle:
            self.registry.disconnect()
        else:
            self.registry.connect()
        self._update_connection()

    def _update_connection(self) -> None:
        hwnd = self.registry.window_handle
        if hwnd:
            title = self.registry.services.window_system.window_title(hwnd) or "game"
            self.conn_label.setText(f"Connected: {title}")
            self.btn_connect.setText("Disconnect")
        else:
            self.conn_label.setText("Not connected")
            self.btn_connect.setText("Connect")

    def _check_window(self) -> None:
        if self.registry.window_handle and not self.registry.check_window():
            self.conn_label.setText("Connection Lost")
            self.btn_connect.setText("Connect")

    # ---- polling ----
    def _tick(self) -> None:
        self.registry.tick()
        self.refresh()
        self.update_tick_interval()

    def refresh(self) -> None:
        for row in self._rows.values():
            row.refresh()

    def closeEvent(self, event):
        self.registry.stop_all()
        super().closeEvent(event)
