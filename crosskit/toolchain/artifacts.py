"""
Installable artifact definitions.

crosskit installs exactly two kinds of artifacts:

- The cross-compilation SDK (one per host platform), published as a bzip2
  tarball whose contents sit under two wrapper directories.
- The MIPS standard library bundle (one per compiler version), published as
  a gzip tarball with no wrapper directory.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from crosskit.config.parser import VERSION_PLACEHOLDER


class ArtifactKind(str, Enum):
    """Kind of installable artifact."""

    SDK = "sdk"
    STDLIB = "stdlib"


class Codec(str, Enum):
    """Compression applied to the published tarball."""

    BZIP2 = "bzip2"
    GZIP = "gzip"


@dataclass(frozen=True)
class Artifact:
    """
    One installable unit.

    Attributes:
        kind: SDK or standard library bundle
        key: Host platform (SDK) or compiler version (stdlib bundle)
        url: Download URL of the compressed tarball
        install_root: Directory the extracted contents end up in
        strip_components: Leading path segments dropped on extraction
        codec: Compression of the tarball
    """

    kind: ArtifactKind
    key: str
    url: str
    install_root: Path
    strip_components: int
    codec: Codec

    @property
    def archive_name(self) -> str:
        """File name of the tarball, as it appears in the digest line."""
        return Path(urlparse(self.url).path).name

    @property
    def artifact_id(self) -> str:
        """Identifier used for lock files and logs (e.g., 'sdk-linux')."""
        return f"{self.kind.value}-{self.key}"

    @property
    def display_name(self) -> str:
        """Human readable name used in messages."""
        if self.kind is ArtifactKind.SDK:
            return "SDK"
        return f"MIPS libstd v{self.key}"


def sdk_artifact(platform: str, sdk_root: Path, url: str) -> Artifact:
    """
    Describe the SDK for a host platform.

    Args:
        platform: SDK platform identifier ('macos', 'linux')
        sdk_root: Directory holding one SDK per platform
        url: Tarball URL for the platform
    """
    return Artifact(
        kind=ArtifactKind.SDK,
        key=platform,
        url=url,
        install_root=Path(sdk_root) / platform,
        strip_components=2,
        codec=Codec.BZIP2,
    )


def stdlib_artifact(version: str, rustlib_root: Path, url_template: str) -> Artifact:
    """
    Describe the standard library bundle for a compiler version.

    Args:
        version: Compiler version (e.g., '1.14.0')
        rustlib_root: Directory holding one bundle per version
        url_template: Tarball URL with a ``VERSION`` placeholder
    """
    return Artifact(
        kind=ArtifactKind.STDLIB,
        key=version,
        url=url_template.replace(VERSION_PLACEHOLDER, version),
        install_root=Path(rustlib_root) / version,
        strip_components=0,
        codec=Codec.GZIP,
    )
