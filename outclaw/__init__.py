"""outclaw: install and manage skills for OpenClaw."""

__version__ = "0.1.0"
