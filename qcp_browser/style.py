# qcp_browser/style.py
from PyQt5.QtGui import QColor, QPalette

from .entry import decode_mode, Triad

# ---- Theme tokens (tweak these) --------------------------------------------
ACCENT        = "#66b0ff"
ACCENT_HOVER  = "#4d9cf0"

BG            = "#0b0f14"   # app background
PANEL         = "#11161c"   # elevated panes
PANEL_ALT     = "#0f141b"   # inputs, table cells
STROKE        = "#1e2430"
STROKE_HOVER  = "#2a3544"

TEXT          = "#e7eef7"
MUTED         = "#9fb5cc"

# mode string colors: d / r / w / x
PERM_DIR      = "#5a93ff"
PERM_READ     = "#ffd75f"
PERM_WRITE    = "#ff5c5c"
PERM_EXEC     = "#16c784"

STATUS_COLORS = {"info": MUTED, "warning": PERM_READ, "error": PERM_WRITE}


def _span(color: str, ch: str) -> str:
    return f'<span style="color:{color}">{ch}</span>'


def _triad_html(t: Triad) -> str:
    return ((_span(PERM_READ, "r") if t.read else "-")
            + (_span(PERM_WRITE, "w") if t.write else "-")
            + (_span(PERM_EXEC, "x") if t.execute else "-"))


def mode_html(bits: int) -> str:
    """Rich-text version of render_mode_string for QLabel cells."""
    info = decode_mode(bits)
    out = _span(PERM_DIR, "d") if info.is_directory else "-"
    out += _triad_html(info.owner) + _triad_html(info.group) + _triad_html(info.other)
    return f'<span style="font-family:monospace">{out}</span>'


def _global_qss() -> str:
    return f"""
    QWidget {{
        background: {BG};
        color: {TEXT};
        selection-background-color: {ACCENT};
        selection-color: #0b0f14;
    }}

    QLineEdit, QPlainTextEdit {{
        background: {PANEL_ALT};
        border: 1px solid {STROKE};
        border-radius: 8px;
        padding: 6px 10px;
    }}
    QLineEdit:hover, QPlainTextEdit:hover {{ border-color: {STROKE_HOVER}; }}
    QLineEdit:focus, QPlainTextEdit:focus {{ border-color: {ACCENT}; }}
    QLineEdit:read-only {{ color: {MUTED}; }}

    QPushButton, QToolButton {{
        background: #1b242f;
        border: 1px solid {STROKE};
        border-radius: 8px;
        padding: 6px 12px;
        color: {TEXT};
        font-weight: 600;
    }}
    QPushButton:hover, QToolButton:hover {{ background: #202b39; border-color: {STROKE_HOVER}; }}
    QPushButton:disabled, QToolButton:disabled {{ color: {MUTED}; background: {PANEL}; border-color: {STROKE}; }}

    /* objectName('primary') */
    QPushButton#primary {{
        background: {ACCENT};
        border-color: {ACCENT};
        color: #0b0f14;
    }}
    QPushButton#primary:hover {{ background: {ACCENT_HOVER}; border-color: {ACCENT_HOVER}; }}
    QPushButton#primary:disabled {{ color: {MUTED}; background: {PANEL}; border-color: {STROKE}; }}

    QTableWidget {{
        background: {PANEL_ALT};
        border: 1px solid {STROKE};
        border-radius: 6px;
        gridline-color: {STROKE};
    }}
    QTableWidget:disabled {{ color: {MUTED}; }}
    QHeaderView::section {{
        background: {PANEL};
        color: {MUTED};
        border: none;
        padding: 4px 8px;
    }}

    QLabel#StatusLabel[level="warning"] {{ color: {STATUS_COLORS["warning"]}; }}
    QLabel#StatusLabel[level="error"]   {{ color: {STATUS_COLORS["error"]}; }}
    QLabel#StatusLabel {{ color: {STATUS_COLORS["info"]}; }}

    QTableWidget QToolButton {{
        padding: 1px 6px;
        border-radius: 4px;
        font-weight: 400;
    }}
    QTableWidget QToolButton:!disabled:hover {{ color: {ACCENT}; }}
    QTableWidget QLabel {{ background: transparent; padding: 0 6px; }}

    QPlainTextEdit {{ font-family: monospace; color: {MUTED}; }}
    """


def apply_app_style(app):
    # Fusion + palette, then global QSS
    app.setStyle("Fusion")
    pal = QPalette()
    pal.setColor(QPalette.Window, QColor(BG))
    pal.setColor(QPalette.Base, QColor(PANEL_ALT))
    pal.setColor(QPalette.Button, QColor(PANEL))
    pal.setColor(QPalette.Text, QColor(TEXT))
    pal.setColor(QPalette.WindowText, QColor(TEXT))
    pal.setColor(QPalette.ButtonText, QColor(TEXT))
    pal.setColor(QPalette.Highlight, QColor(ACCENT))
    pal.setColor(QPalette.HighlightedText, QColor("#0b0f14"))
    app.setPalette(pal)
    app.setStyleSheet(_global_qss())
