"""votetrail - tamper-evident vote and attendance records."""

__version__ = "0.1.0"
