"""Local artifact cache with optional remote repository fallback."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Sequence

import requests

from protobuild.errors import ArtifactNotFound, ExtractionFailure
from protobuild.models import DependencyRef
from protobuild.utils.files import compute_digest

LOGGER = logging.getLogger(__name__)

USER_AGENT = "protobuild/0.1.0"
DEFAULT_TIMEOUT = 30
CHUNK_SIZE = 8192


def artifact_relative_path(dep: DependencyRef, extension: str = "jar") -> Path:
    """Maven repository layout path of ``dep``'s main archive."""
    return (
        Path(*dep.organization.split("."))
        / dep.name
        / dep.version
        / f"{dep.name}-{dep.version}.{extension}"
    )


class ArtifactCache:
    """Resolves dependency references to archives on the local disk."""

    def __init__(
        self,
        cache_roots: Sequence[Path],
        *,
        repository_url: Optional[str] = None,
        offline: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.cache_roots = [Path(root) for root in cache_roots]
        self.repository_url = repository_url.rstrip("/") if repository_url else None
        self.offline = offline
        self.timeout = timeout

    def resolve(self, dep: DependencyRef) -> Path:
        """Return the archive backing ``dep``, downloading it if needed."""
        if dep.path is not None:
            if not dep.path.is_file():
                raise ArtifactNotFound(dep, f"archive {dep.path} does not exist")
            return dep.path

        relative = artifact_relative_path(dep)
        for root in self.cache_roots:
            candidate = root / relative
            if candidate.is_file():
                LOGGER.debug("Found %s in cache %s", dep, root)
                return candidate

        if self.repository_url is None or self.offline or not self.cache_roots:
            searched = ", ".join(str(root) for root in self.cache_roots) or "<none>"
            raise ArtifactNotFound(dep, f"not found in local caches ({searched})")

        return self._download(dep, relative, self.cache_roots[0] / relative)

    def _download(self, dep: DependencyRef, relative: Path, destination: Path) -> Path:
        url = f"{self.repository_url}/{relative.as_posix()}"
        headers = {"User-Agent": USER_AGENT}
        LOGGER.info("Downloading %s", url)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=destination.parent, suffix=".part")
        except OSError as exc:
            raise ExtractionFailure(dep, f"cannot write to cache {destination.parent}: {exc}") from exc
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                with requests.get(url, headers=headers, stream=True, timeout=self.timeout) as response:
                    if response.status_code == 404:
                        raise ArtifactNotFound(dep, f"not found at {url}")
                    response.raise_for_status()
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)

            self._verify_checksum(dep, url, tmp_path)
            tmp_path.replace(destination)
        except (requests.exceptions.RequestException, OSError) as exc:
            raise ExtractionFailure(dep, f"download from {url} failed: {exc}") from exc
        finally:
            tmp_path.unlink(missing_ok=True)

        return destination

    def _verify_checksum(self, dep: DependencyRef, url: str, path: Path) -> None:
        """Compare against the repository's ``.sha1`` sidecar when published."""
        response = requests.get(
            f"{url}.sha1", headers={"User-Agent": USER_AGENT}, timeout=self.timeout
        )
        if response.status_code != 200:
            LOGGER.debug("No checksum published for %s", url)
            return

        expected = response.text.split()[0].strip().lower() if response.text.strip() else ""
        actual = compute_digest(path, "sha1")
        if expected and expected != actual:
            raise ExtractionFailure(
                dep, f"checksum mismatch for {url}: expected {expected}, got {actual}"
            )
