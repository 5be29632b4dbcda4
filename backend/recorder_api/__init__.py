"""Screen Recorder Pro API: recording gateway in front of ScreenshotOne."""

__version__ = "1.0.0"
