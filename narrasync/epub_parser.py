import posixpath
import zipfile
import zlib
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import unquote

from bs4 import BeautifulSoup

from .errors import (
    ArchiveUnreadable,
    MalformedDocument,
    ManifestItemMissing,
    PackageNotFound,
    ResourceMissing,
)
from .models import END_OF_BOOK, Chapter
from .overlay_parser import parse_overlay
from .utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ManifestItem:
    id: str
    href: str
    media_type: str = ""
    media_overlay: Optional[str] = None     # manifest id of the SMIL document


@dataclass(frozen=True)
class PackageDocument:
    path: str                               # location of the .opf inside the archive
    spine: List[str]                        # manifest ids in reading order
    manifest: Dict[str, ManifestItem]
    metadata: Dict[str, str]

    @property
    def base_dir(self) -> str:
        return posixpath.dirname(self.path)


class EpubArchive:
    """Read access to the entries of an EPUB zip."""

    def __init__(self, zf: zipfile.ZipFile):
        self.zf = zf
        self.names = [info.filename for info in zf.infolist() if not info.is_dir()]
        self._name_set = set(self.names)

    def read(self, path: str) -> bytes:
        try:
            return self.zf.read(path)
        except KeyError:
            raise ResourceMissing("Entry not in archive", path=path) from None
        # Encrypted entries raise RuntimeError, unsupported compression NotImplementedError
        except (zipfile.BadZipFile, zlib.error, OSError, RuntimeError,
                NotImplementedError, EOFError) as e:
            raise ArchiveUnreadable(f"Failed to read entry: {e}", path=path) from e

    def resolve(self, href: str, base_dir: str = "") -> Optional[str]:
        """
        Maps a reference to an archive entry.
        The href is tried relative to `base_dir` first; otherwise the first
        entry with the same file name wins.
        """
        href = unquote(href.split('#')[0]).strip()
        if not href:
            return None

        candidate = posixpath.normpath(posixpath.join(base_dir, href)).lstrip('/')
        if candidate in self._name_set:
            return candidate

        filename = posixpath.basename(href)
        for name in self.names:
            if posixpath.basename(name) == filename:
                logger.debug(f"Resolved '{href}' by file name to '{name}'")
                return name
        return None

    def find_package_path(self) -> str:
        candidates = [name for name in self.names if name.lower().endswith('.opf')]
        if not candidates:
            raise PackageNotFound("No package document (.opf) in archive")
        if len(candidates) > 1:
            raise PackageNotFound(
                f"Ambiguous package document: {len(candidates)} candidates",
                path=", ".join(candidates))
        return candidates[0]


@contextmanager
def open_archive(archive):
    """
    Yields an EpubArchive for a path, a binary file object or an open ZipFile.
    ZipFiles passed in by the caller are left open.
    """
    if isinstance(archive, zipfile.ZipFile):
        yield EpubArchive(archive)
        return

    try:
        zf = zipfile.ZipFile(archive)
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveUnreadable(f"Cannot open archive: {e}", path=str(archive)) from e

    with zf:
        yield EpubArchive(zf)


def parse_package(archive: EpubArchive) -> PackageDocument:
    """Reads spine, manifest and Dublin Core metadata from the package document."""
    path = archive.find_package_path()
    soup = BeautifulSoup(archive.read(path), 'xml')

    package = soup.find('package')
    if package is None:
        raise MalformedDocument("Package document has no <package> root", path=path)

    manifest: Dict[str, ManifestItem] = {}
    manifest_el = package.find('manifest')
    if manifest_el is not None:
        for item in manifest_el.find_all('item'):
            item_id = item.get('id')
            href = item.get('href')
            if not item_id or not href:
                logger.debug(f"Skipping manifest item without id/href: {item}")
                continue
            manifest[item_id] = ManifestItem(
                id=item_id,
                href=href,
                media_type=item.get('media-type', ''),
                media_overlay=item.get('media-overlay') or None,
            )

    spine: List[str] = []
    spine_el = package.find('spine')
    if spine_el is not None:
        # An itemref without idref is kept so spine positions stay aligned
        spine = [itemref.get('idref', '') for itemref in spine_el.find_all('itemref')]

    metadata = {}
    metadata_el = package.find('metadata')
    if metadata_el is not None:
        for name in ('title', 'creator', 'language', 'identifier'):
            el = metadata_el.find(name)
            if el is not None and el.get_text(strip=True):
                metadata[name] = el.get_text(strip=True)

    logger.debug(f"Package {path}: {len(spine)} spine entries, {len(manifest)} manifest items")
    return PackageDocument(path=path, spine=spine, manifest=manifest, metadata=metadata)


def extract_body(markup: bytes) -> str:
    """Keeps only the inner markup of <body>, dropping the document wrapper and <head>."""
    soup = BeautifulSoup(markup, 'html.parser')
    body = soup.find('body')
    if body is None:
        for head in soup.find_all('head'):
            head.decompose()
        return soup.decode_contents().strip()
    return body.decode_contents().strip()


class Ingestor:
    """
    Turns one spine position of an EPUB 3 archive into a Chapter.

    Structural problems raise a StructuralError subclass; asking for a
    position past the end of the spine returns END_OF_BOOK.
    """

    def produce(self, archive, spine_index: int):
        if spine_index < 0:
            raise ValueError(f"spine_index must be >= 0, got {spine_index}")

        with open_archive(archive) as book:
            package = parse_package(book)

            if spine_index >= len(package.spine):
                logger.info(f"Spine index {spine_index} is past the last chapter")
                return END_OF_BOOK

            idref = package.spine[spine_index]
            item = package.manifest.get(idref) if idref else None
            if item is None:
                raise ManifestItemMissing(
                    f"Spine entry {spine_index} has no manifest item",
                    path=package.path, item_id=idref or None)

            logger.info(f"Loading chapter {spine_index + 1}: {item.href}")
            content_path = self._resolve(book, package, item)
            content = extract_body(book.read(content_path))

            timeline = ()
            audio = None
            if item.media_overlay:
                overlay_item = package.manifest.get(item.media_overlay)
                if overlay_item is None:
                    raise ManifestItemMissing(
                        "Media overlay is not in the manifest",
                        path=package.path, item_id=item.media_overlay)
                overlay = parse_overlay(book, self._resolve(book, package, overlay_item))
                timeline = overlay.timeline
                audio = overlay.audio
            else:
                logger.info(f"'{item.id}' has no media overlay; text-only chapter")

        return Chapter(
            id=item.id,
            title=f"Chapter {spine_index + 1}",
            content=content,
            timeline=timeline,
            audio=audio,
        )

    def spine_length(self, archive) -> int:
        with open_archive(archive) as book:
            return len(parse_package(book).spine)

    def read_metadata(self, archive) -> dict:
        """
        Extracts metadata (Author, Title) from the package document.
        Returns a dictionary with 'author' and 'title'.
        """
        with open_archive(archive) as book:
            metadata = parse_package(book).metadata
        return {
            "title": metadata.get('title', "Unknown"),
            "author": metadata.get('creator', "Unknown"),
        }

    @staticmethod
    def _resolve(book: EpubArchive, package: PackageDocument, item: ManifestItem) -> str:
        path = book.resolve(item.href, package.base_dir)
        if path is None:
            raise ResourceMissing(
                f"Manifest item '{item.id}' points to a missing file",
                path=item.href, item_id=item.id)
        return path
