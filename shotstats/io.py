from __future__ import annotations

import gzip
import io
import logging
import zipfile
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import pandas as pd
import requests

BytesLike = Union[bytes, bytearray, memoryview]

logger = logging.getLogger(__name__)


def _looks_like_html(head: str) -> bool:
    head = head.lower()
    return "<html" in head or "<!doctype html" in head


def load_csv(path: Union[str, Path]) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Shot CSV not found: {path}")
    logger.info("Reading shots from %s", path)
    return load_csv_bytes(path.read_bytes())


def load_csv_bytes(raw: BytesLike) -> pd.DataFrame:
    raw = bytes(raw)
    if len(raw) == 0:
        raise ValueError("Shot CSV payload is empty.")

    # gzip magic
    if len(raw) >= 2 and raw[0] == 0x1F and raw[1] == 0x8B:
        raw = gzip.decompress(raw)

    head = raw[:200].decode("utf-8", errors="replace")
    if _looks_like_html(head):
        raise ValueError(
            "Shot CSV payload is HTML, not CSV. "
            "This usually means the download URL is wrong (404) or rate-limited."
        )

    try:
        return pd.read_csv(io.BytesIO(raw))
    except (ValueError, pd.errors.ParserError) as e:
        preview = head.replace("\n", "\\n")
        raise ValueError(f"Failed to parse shot CSV. First bytes: {preview}") from e


def _zip_members(zf: zipfile.ZipFile) -> list[str]:
    # ignore folders + mac metadata
    return [
        n for n in zf.namelist()
        if not n.endswith("/")
        and not n.startswith("__MACOSX/")
        and "/._" not in n
    ]


def load_csv_from_zip(zip_bytes: BytesLike, name: Optional[str] = None) -> pd.DataFrame:
    """
    Load a shot CSV out of a zip archive.

    - name: basename of the member to read; defaults to the first .csv or
      .csv.gz member in archive order.
    """
    with zipfile.ZipFile(io.BytesIO(bytes(zip_bytes)), "r") as zf:
        members = _zip_members(zf)
        if name is not None:
            picked = [m for m in members if Path(m).name == name]
        else:
            picked = [m for m in members if m.endswith(".csv") or m.endswith(".csv.gz")]

        if not picked:
            want = name or "*.csv"
            raise ValueError(f"Zip archive has no member matching {want}: {members}")

        logger.info("Reading shots from zip member %s", picked[0])
        return load_csv_bytes(zf.read(picked[0]))


def _download_bytes(url: str, *, timeout: int = 90) -> bytes:
    r = requests.get(url, timeout=timeout)
    r.raise_for_status()
    content = r.content

    head = content[:200].decode("utf-8", errors="replace")
    if _looks_like_html(head):
        raise ValueError(f"Got HTML instead of file bytes from {url}")

    # Git LFS pointer file (text) instead of the actual content
    if head.lower().startswith("version https://git-lfs.github.com/spec"):
        raise ValueError(f"Got a Git LFS pointer (not the file content) from {url}")

    return content


def fetch_csv(
    url: str,
    cache_dir: Path,
    *,
    force_download: bool = False,
    timeout: int = 90,
) -> pd.DataFrame:
    """
    Download (or load from cache) a shot CSV.

    The payload is cached as cache_dir/<basename of the url path> so repeated
    report runs and Streamlit reruns don't re-download.
    """
    cache_dir = Path(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)

    basename = Path(urlparse(url).path).name or "shots.csv"
    cached = cache_dir / basename

    if cached.exists() and not force_download:
        logger.info("Using cached download %s", cached)
        return load_csv_bytes(cached.read_bytes())

    logger.info("Downloading %s", url)
    try:
        content = _download_bytes(url, timeout=timeout)
    except requests.RequestException as e:
        raise ValueError(f"Failed to download {url}: {e}") from e

    cached.write_bytes(content)
    return load_csv_bytes(content)
