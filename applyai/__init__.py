"""Form detection and auto-fill for job applications (Playwright + Gemini)."""

__version__ = "0.1.0"
