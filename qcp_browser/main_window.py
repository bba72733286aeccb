# qcp_browser/main_window.py
from PyQt5.QtWidgets import QMainWindow, QApplication

from .file_browser import FileBrowser
from .session import RemoteSession


class MainWindow(QMainWindow):
	def __init__(self, session: RemoteSession, *, hostname: str = "", location: str = ".", executable: str = None):
		super().__init__()
		self.session = session
		self.setWindowTitle(f"qcp: {session.endpoint}")
		self.resize(1040, 680)
		self.setWindowIcon(QApplication.windowIcon())

		self.browser = FileBrowser(session, hostname=hostname, location=location, executable=executable, parent=self)
		self.setCentralWidget(self.browser)
		self.session.location_changed.connect(self._update_title)

	def _update_title(self, location: str):
		suffix = f" {location}" if location else ""
		self.setWindowTitle(f"qcp: {self.session.endpoint}{suffix}")

	def closeEvent(self, e):
		# say goodbye to the server if we still can
		self.session.disconnect()
		super().closeEvent(e)
