"""CrowdWatch backend: synthetic crowd analytics, uploads and video analysis."""

__version__ = "1.0.0"
