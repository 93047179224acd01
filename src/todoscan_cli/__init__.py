"""Tag scanner for CI: find TODO/FIXME comments, diff them against a base revision, gate builds."""

__version__ = "0.1.0"
