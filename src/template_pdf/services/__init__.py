"""
Service layer for external collaborators.

Contains abstractions for:
- Version sources and archive snapshots (GitHub)
- Upload sinks (Slack)
"""

from .version_source import VersionSource, ArchiveSource, GitHubVersionSource
from .upload_sink import UploadSink, UploadResult, SlackUploader

__all__ = [
    "VersionSource",
    "ArchiveSource",
    "GitHubVersionSource",
    "UploadSink",
    "UploadResult",
    "SlackUploader"
]
