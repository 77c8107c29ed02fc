"""eventdocx - render event proposals into Word documents from a template."""

__version__ = "0.1.0"
