"""CyberGuard API: accounts, phone verification and learning progress."""

__version__ = "1.0.0"
