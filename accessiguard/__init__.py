"""AccessiGuard CLI — scan a URL for WCAG accessibility issues from the terminal."""

__version__ = "1.0.0"
