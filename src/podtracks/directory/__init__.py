"""Podcast directory API access."""

from podtracks.directory.client import DirectoryClient, compute_auth_headers
from podtracks.directory.resolver import DirectoryResolver

__all__ = ["DirectoryClient", "DirectoryResolver", "compute_auth_headers"]
