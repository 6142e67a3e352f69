"""
Artifact downloader.

This package handles:
1. Streaming the artifact into a scratch file
2. Hashing the bytes as they arrive
3. Verifying the digest against the expected value
4. Removing the scratch file on every exit path
"""

from .downloader import ArtifactDownloader, FetchedArtifact

__all__ = ["ArtifactDownloader", "FetchedArtifact"]
