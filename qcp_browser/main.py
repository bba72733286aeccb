# qcp_browser/main.py
import argparse
import sys

from PyQt5.QtWidgets import QApplication
from PyQt5.QtCore import Qt

from . import __version__, config
from .logutil import setup_logging
from .main_window import MainWindow
from .session import RemoteSession
from .style import apply_app_style


def build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="qcp-browser", description="Browse and download files on a qcp server.")
	p.add_argument("--endpoint", default=config.ENDPOINT, help="WebSocket endpoint (default: %(default)s)")
	p.add_argument("--hostname", default=config.HOSTNAME, help="initial value of the host field")
	p.add_argument("--location", default=config.LOCATION, help="initial remote directory")
	p.add_argument("--executable", default=config.EXECUTABLE, help="path of the qcp binary on the remote host")
	p.add_argument("--timeout-ms", type=int, default=config.REQUEST_TIMEOUT_MS,
				   help="how long to wait for a server answer (default: %(default)s)")
	p.add_argument("--log-level", default=config.LOG_LEVEL, help="console log level")
	p.add_argument("--log-dir", default=config.LOG_DIR, help="write JSONL logs to this directory")
	p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
	return p


def main(argv=None) -> int:
	args = build_parser().parse_args(argv)
	log = setup_logging(args.log_level, args.log_dir)

	# Hi-DPI before QApplication
	QApplication.setAttribute(Qt.AA_UseHighDpiPixmaps, True)
	QApplication.setAttribute(Qt.AA_EnableHighDpiScaling, True)

	app = QApplication(sys.argv[:1])
	app.setApplicationName("qcp-browser")
	apply_app_style(app)

	session = RemoteSession(args.endpoint, request_timeout_ms=args.timeout_ms)
	mw = MainWindow(session, hostname=args.hostname, location=args.location, executable=args.executable)
	mw.show()
	log.info("qcp-browser %s endpoint=%s", __version__, args.endpoint)
	return app.exec_()


if __name__ == "__main__":
	sys.exit(main())
