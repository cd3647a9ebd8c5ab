"""Design tokens for the CabalHelper control panel (single source of truth)."""

# Colors
ACCENT = "#00DDFF"
WARN = "#FFB800"
TEXT_DEFAULT = "#D5DCE3"
STATUS_OK = "#31F37A"
STATUS_ERROR = "#FF5A5A"
BG_CARD_RGBA = "rgba(10,20,30,0.92)"
BG_SECTION_RGBA = "rgba(18,28,40,0.70)"
BORDER_SECTION = "rgba(0,221,255,0.28)"

# Radii (pixels)
RADIUS_CARD = 10
RADIUS_SECTION = 8

# Fonts
FONT_STACK = "'Segoe UI', Arial, sans-serif"
FONT_SIZE = 10

STYLESHEET = f"""
QWidget#card {{ background: {BG_CARD_RGBA}; border-radius: {RADIUS_CARD}px; }}
QFrame#toolRow {{ background: {BG_SECTION_RGBA}; border: 1px solid {BORDER_SECTION};
                  border-radius: {RADIUS_SECTION}px; }}
QLabel {{ color: {TEXT_DEFAULT}; font-family: {FONT_STACK}; font-size: {FONT_SIZE}pt; }}
QLabel#title {{ color: {ACCENT}; font-size: 16pt; font-weight: bold; }}
QLabel#toolName {{ color: {ACCENT}; font-weight: bold; }}
QPushButton {{ font-family: {FONT_STACK}; padding: 3px 8px; }}
"""
