# qcp_browser/file_browser.py
from __future__ import annotations

from PyQt5.QtWidgets import (
	QWidget, QTableWidget, QTableWidgetItem, QPushButton, QLineEdit, QLabel,
	QHBoxLayout, QVBoxLayout, QFileDialog, QHeaderView, QToolButton, QCheckBox,
	QApplication, QStyle, QSplitter, QPlainTextEdit, QShortcut, QAbstractItemView
)
from PyQt5.QtCore import Qt
from PyQt5.QtGui import QKeySequence, QIcon

from .entry import PARENT_ENTRY, RemoteEntry
from .logutil import get_logger, safe_preview
from .session import RemoteSession, BROWSING, CONNECTED
from .style import mode_html

log = get_logger("view")

UPLOAD_FILTER = "Images (*.png *.gif *.jpeg *.jpg)"


class EntryItem(QTableWidgetItem):
	"""Name cell; keeps the entry it was rendered from."""
	def __init__(self, entry: RemoteEntry, icon: QIcon = None):
		super().__init__(entry.name)
		self.entry = entry
		self.setFlags(Qt.ItemIsEnabled | Qt.ItemIsSelectable)
		self.setToolTip(entry.mode_string)
		if icon: self.setIcon(icon)


class FileBrowser(QWidget):
	"""
	Connect form, remote listing and protocol log for one RemoteSession.

	The table is rebuilt from scratch on every listing. Each row is bound to its
	RemoteEntry through ``_row_entries`` and the closures given to its buttons;
	nothing is parsed back out of the widgets.
	"""
	COL_SELECT, COL_DOWNLOAD, COL_MODE, COL_NAME, COL_OPEN = range(5)

	def __init__(self, session: RemoteSession, *, hostname: str = "", location: str = ".",
				 executable: str = None, parent=None):
		super().__init__(parent)
		self.session = session
		self.executable = executable
		self._row_entries: list[RemoteEntry] = []
		self._selectors: list[QCheckBox] = []

		sty = QApplication.style()
		self.icon_dir = sty.standardIcon(QStyle.SP_DirIcon)
		self.icon_file = sty.standardIcon(QStyle.SP_FileIcon)
		self.icon_up = sty.standardIcon(QStyle.SP_ArrowUp)

		# ---------- Connect form ----------
		self.host_edit = QLineEdit(hostname)
		self.host_edit.setPlaceholderText("user@host:port")
		self.location_edit = QLineEdit(location)
		self.location_edit.setPlaceholderText("Remote directory")
		self.btn_connect = QPushButton("Connect"); self.btn_connect.setObjectName("primary")
		self.btn_disconnect = QPushButton("Disconnect")
		self.host_edit.returnPressed.connect(self.connect_clicked)
		self.location_edit.returnPressed.connect(self.connect_clicked)

		form = QHBoxLayout(); form.setSpacing(6); form.setContentsMargins(0, 0, 0, 0)
		form.addWidget(QLabel("Host")); form.addWidget(self.host_edit, 2)
		form.addWidget(QLabel("Location")); form.addWidget(self.location_edit, 3)
		form.addWidget(self.btn_connect); form.addWidget(self.btn_disconnect)

		# ---------- Table ----------
		self.table = QTableWidget(0, 5)
		self.table.setHorizontalHeaderLabels(["", "", "Mode", "Name", ""])
		hdr = self.table.horizontalHeader()
		hdr.setStretchLastSection(False)
		for col in (self.COL_SELECT, self.COL_DOWNLOAD, self.COL_MODE, self.COL_OPEN):
			hdr.setSectionResizeMode(col, QHeaderView.ResizeToContents)
		hdr.setSectionResizeMode(self.COL_NAME, QHeaderView.Stretch)
		self.table.setSortingEnabled(False)  # row 0 is always ".."
		self.table.setEditTriggers(QTableWidget.NoEditTriggers)
		self.table.setSelectionBehavior(QTableWidget.SelectRows)
		self.table.setSelectionMode(QAbstractItemView.SingleSelection)
		self.table.verticalHeader().setVisible(False)
		self.table.cellDoubleClicked.connect(self._cell_dbl)

		# ---------- Protocol log ----------
		self.log_view = QPlainTextEdit(self)
		self.log_view.setReadOnly(True)
		self.log_view.setMaximumBlockCount(500)
		self.log_view.setPlaceholderText("Protocol log")

		self.split = QSplitter(Qt.Vertical, self); self.split.setChildrenCollapsible(True)
		self.split.addWidget(self.table); self.split.addWidget(self.log_view)
		self.split.setStretchFactor(0, 4); self.split.setStretchFactor(1, 1)

		# ---------- Actions row ----------
		self.btn_upload = QToolButton(); self.btn_upload.setText("Upload")
		self.btn_refresh = QToolButton(); self.btn_refresh.setText("Refresh")
		self.btn_download_selected = QPushButton("Download selected")

		bottom = QHBoxLayout()
		bottom.addWidget(self.btn_upload)
		bottom.addWidget(self.btn_refresh)
		bottom.addWidget(self.btn_download_selected)
		bottom.addStretch()
		self.status = QLabel("Not connected")
		self.status.setObjectName("StatusLabel")
		bottom.addWidget(self.status)

		root = QVBoxLayout(self); root.setContentsMargins(10, 6, 10, 8); root.setSpacing(6)
		root.addLayout(form)
		root.addWidget(self.split, 1)
		root.addLayout(bottom)

		# ---------- Shortcuts ----------
		# scoped to the table so they don't steal keys from the line edits
		_sc_up = QShortcut(QKeySequence(Qt.Key_Backspace), self.table, activated=self.up)
		_sc_up.setContext(Qt.WidgetWithChildrenShortcut)
		self._scoped_shortcuts = [_sc_up]
		for _k in (Qt.Key_Return, Qt.Key_Enter):
			_sc_open = QShortcut(QKeySequence(_k), self.table, activated=self._open_selection)
			_sc_open.setContext(Qt.WidgetWithChildrenShortcut)
			self._scoped_shortcuts.append(_sc_open)

		# ---------- Wiring ----------
		self.btn_connect.clicked.connect(self.connect_clicked)
		self.btn_disconnect.clicked.connect(self.session.disconnect)
		self.btn_upload.clicked.connect(self.upload)
		self.btn_refresh.clicked.connect(self.session.list_files)
		self.btn_download_selected.clicked.connect(self.session.download_selected)

		self.session.affordances_changed.connect(self._sync_controls)
		self.session.listing_changed.connect(self._render)
		self.session.location_changed.connect(self._on_location)
		self.session.selection_changed.connect(self._on_selection_changed)
		self.session.status_changed.connect(self._on_status)
		self.session.frame_logged.connect(self._on_frame)

		self._render(self.session.entries)
		self._sync_controls()

	# ---------- Controls ----------
	def _sync_controls(self):
		s = self.session
		live = s.state in (CONNECTED, BROWSING)
		self.btn_connect.setEnabled(s.can_connect)
		self.btn_disconnect.setEnabled(s.can_disconnect)
		self.host_edit.setReadOnly(not s.can_connect)
		self.location_edit.setReadOnly(not s.can_connect)
		self.btn_upload.setEnabled(live)
		self.btn_refresh.setEnabled(live)
		self.table.setEnabled(live)
		self.btn_download_selected.setEnabled(s.state == BROWSING and bool(s.selection))

	def connect_clicked(self):
		if not self.session.can_connect:
			return
		host = self.host_edit.text().strip()
		location = self.location_edit.text().strip() or "."
		log.debug("connect host=%s location=%s executable=%s", host, location, self.executable)
		self.session.connect(host, location, self.executable)

	# ---------- Rendering ----------
	def _render(self, entries):
		self.table.setRowCount(0)
		self._row_entries = list(entries)
		self._selectors = []
		self.table.setRowCount(len(self._row_entries))
		for row, entry in enumerate(self._row_entries):
			self._set_row(row, entry)
		log.debug("rendered %d rows", len(self._row_entries))

	def _set_row(self, row: int, entry: RemoteEntry):
		sel = QCheckBox(self.table)
		sel.setToolTip(f"Select {entry.name}")
		sel.toggled.connect(lambda checked, e=entry: self.session.set_selected(e, checked))
		self.table.setCellWidget(row, self.COL_SELECT, sel)
		self._selectors.append(sel)

		dl = QToolButton(self.table); dl.setText("○")
		dl.setToolTip(f"Download {entry.name}")
		dl.clicked.connect(lambda _checked=False, e=entry: self.session.download(e))
		self.table.setCellWidget(row, self.COL_DOWNLOAD, dl)

		perms = QLabel(self.table)
		perms.setTextFormat(Qt.RichText)
		perms.setText(mode_html(entry.mode))
		perms.setToolTip(entry.mode_string)
		self.table.setCellWidget(row, self.COL_MODE, perms)

		if entry.is_parent:
			icon = self.icon_up
		else:
			icon = self.icon_dir if entry.is_directory else self.icon_file
		self.table.setItem(row, self.COL_NAME, EntryItem(entry, icon))

		nav = QToolButton(self.table); nav.setText("→")
		nav.setToolTip(f"Open {entry.name}")
		nav.setEnabled(entry.is_directory)
		nav.clicked.connect(lambda _checked=False, e=entry: self.session.enter(e))
		self.table.setCellWidget(row, self.COL_OPEN, nav)

	# ---------- Row accessors ----------
	def row_count(self) -> int:
		return len(self._row_entries)

	def entry_at(self, row: int) -> RemoteEntry:
		return self._row_entries[row]

	def selector(self, row: int) -> QCheckBox:
		return self.table.cellWidget(row, self.COL_SELECT)

	def download_button(self, row: int) -> QToolButton:
		return self.table.cellWidget(row, self.COL_DOWNLOAD)

	def mode_label(self, row: int) -> QLabel:
		return self.table.cellWidget(row, self.COL_MODE)

	def navigate_button(self, row: int) -> QToolButton:
		return self.table.cellWidget(row, self.COL_OPEN)

	# ---------- Navigation ----------
	def _cell_dbl(self, row: int, col: int):
		if 0 <= row < len(self._row_entries):
			entry = self._row_entries[row]
			if entry.is_directory:
				self.session.enter(entry)

	def _open_selection(self):
		rows = self.table.selectionModel().selectedRows()
		if rows:
			self._cell_dbl(rows[0].row(), self.COL_NAME)

	def up(self):
		if self._row_entries and self._row_entries[0] == PARENT_ENTRY:
			self.session.enter(PARENT_ENTRY)

	# ---------- Selection ----------
	def _on_selection_changed(self, count: int):
		selected = set(self.session.selection)
		for entry, box in zip(self._row_entries, self._selectors):
			want = entry in selected
			if box.isChecked() != want:
				box.blockSignals(True); box.setChecked(want); box.blockSignals(False)
		self.btn_download_selected.setEnabled(self.session.state == BROWSING and count > 0)

	# ---------- Session feedback ----------
	def _on_location(self, location: str):
		# an empty location means the session was reset; keep what the user typed
		if location:
			self.location_edit.setText(location)

	def _on_status(self, level: str, message: str):
		self.status.setText(message)
		self.status.setProperty("level", level)
		self.status.style().unpolish(self.status); self.status.style().polish(self.status)

	def _on_frame(self, direction: str, text: str):
		self.log_view.appendPlainText(f"{direction} {safe_preview(text, limit=400)}")

	# ---------- Upload ----------
	def upload(self):
		# the protocol has no upload verb yet; the picker is all there is
		path, _ = QFileDialog.getOpenFileName(self, "Upload", "", UPLOAD_FILTER)
		if not path:
			return
		log.info("upload picked %s (not sent)", path)
		self._on_status("warning", "Upload is not supported by this server")
