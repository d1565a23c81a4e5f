"""
Image metadata stripping with independent re-verification.

Pillow re-encodes the pixels into a brand new image, so EXIF, XMP, IPTC and
ICC blocks are never carried over. The written file is then re-read with
exifread (a separate parser) plus a raw byte scan for XMP GPS properties;
any GPS field found raises MediaVerificationError for that asset only.
"""

from __future__ import annotations

import hashlib
import os
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

import exifread
from PIL import Image, ImageOps

from constellation.core.errors import MediaVerificationError
from constellation.core.records.models import CanonicalRecord
from constellation.core.reporting import RunReport

_MODULE = "media-privacy"

_SAVE_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".webp": "WEBP",
    ".gif": "GIF",
    ".bmp": "BMP",
    ".tif": "TIFF",
    ".tiff": "TIFF",
}
_XMP_GPS_MARKERS = (b"GPSLatitude", b"GPSLongitude")
_UNSAFE_DIR_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_DIR_HASH_LEN = 8


def _is_remote(path: str) -> bool:
    return path.startswith("http://") or path.startswith("https://")


def strip_metadata(input_path: str, output_path: str, report: Optional[RunReport] = None) -> Optional[str]:
    if not os.path.isfile(input_path):
        if report is not None:
            report.warn(_MODULE, f"Input file not found or unreadable: {input_path}")
        return None
    fmt = _SAVE_FORMATS.get(os.path.splitext(output_path)[1].lower())
    try:
        with Image.open(input_path) as src:
            src.load()
            fmt = fmt or src.format or "PNG"
            # bake orientation into pixels before the EXIF block is dropped
            img = ImageOps.exif_transpose(src)
            has_alpha = "A" in img.getbands() or "transparency" in img.info
            mode = "RGBA" if has_alpha and fmt != "JPEG" else "RGB"
            if img.mode != mode:
                img = img.convert(mode)
            clean = Image.frombytes(mode, img.size, img.tobytes())
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        clean.save(output_path, format=fmt)
        return output_path
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        if report is not None:
            report.warn(_MODULE, f"Failed to strip metadata from {os.path.basename(input_path)}: {e}")
        return None
    except Exception as e:  # noqa: BLE001
        # malformed EXIF surfaces from Pillow as SyntaxError, struct.error, KeyError and others
        if report is not None:
            report.error(_MODULE, f"Malformed image {os.path.basename(input_path)} ({type(e).__name__}: {e}) -- asset skipped")
        return None


def verify_no_gps(path: str, report: Optional[RunReport] = None) -> Tuple[bool, List[str]]:
    violations: List[str] = []
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError:
        return False, [f"File not found or unreadable: {path}"]

    for marker in _XMP_GPS_MARKERS:
        if marker in raw:
            violations.append(f"XMP GPS property {marker.decode()} present in {os.path.basename(path)}")

    try:
        with open(path, "rb") as f:
            tags = exifread.process_file(f, details=False)
    except Exception as e:  # noqa: BLE001
        # exifread raises assorted errors on formats without an EXIF block
        if report is not None:
            report.info(_MODULE, f"Could not parse EXIF from {os.path.basename(path)}: {e}")
        tags = {}

    gps_keys = sorted(str(k) for k in tags.keys() if "GPS" in str(k))
    if gps_keys:
        violations.append(f"GPS EXIF tags present in {os.path.basename(path)}: {', '.join(gps_keys)}")
    return not violations, violations


def strip_and_verify(input_path: str, output_path: str, report: Optional[RunReport] = None) -> Optional[str]:
    """
    Returns output_path on success, None when the input is missing or cannot
    be decoded. Raises MediaVerificationError (after deleting the output)
    when GPS metadata survived.
    """
    result = strip_metadata(input_path, output_path, report)
    if result is None:
        if report is not None:
            report.warn(_MODULE, f"Skipping verification for {input_path} (strip failed or file missing)")
        return None

    clean, violations = verify_no_gps(output_path, report)
    if not clean:
        try:
            os.remove(output_path)
        except FileNotFoundError:
            pass
        raise MediaVerificationError(
            f"GPS metadata survived stripping in {os.path.basename(input_path)}: {'; '.join(violations)}",
            asset=os.path.basename(input_path),
        )
    return output_path


@dataclass(frozen=True)
class MediaOutcome:
    record: CanonicalRecord
    processed: int
    skipped: int


def _safe_dir_name(record_id: str) -> str:
    """Readable and unique: `rec/1` and `rec_1` share a prefix but not a hash."""
    name = _UNSAFE_DIR_CHARS.sub("_", record_id).lstrip(".") or "_"
    digest = hashlib.sha256(record_id.encode("utf-8")).hexdigest()[:_DIR_HASH_LEN]
    return f"{name}-{digest}"


def _unique_name(base: str, used: Set[str]) -> str:
    stem, ext = os.path.splitext(base)
    name, n = base, 1
    while name.lower() in used:
        n += 1
        name = f"{stem}-{n}{ext}"
    used.add(name.lower())
    return name


def process_record_media(
    record: CanonicalRecord,
    *,
    project_root: str,
    media_dir: str,
    public_dir: str,
    report: Optional[RunReport] = None,
) -> MediaOutcome:
    if not record.media:
        return MediaOutcome(record=record, processed=0, skipped=0)

    kept: List[str] = []
    used_names: Set[str] = set()
    processed = skipped = 0
    record_dir = os.path.join(media_dir, _safe_dir_name(record.id))
    for media_path in record.media:
        if _is_remote(media_path):
            kept.append(media_path)
            continue
        source = media_path if os.path.isabs(media_path) else os.path.join(project_root, media_path)
        if not os.path.isfile(source):
            if report is not None:
                report.warn(_MODULE, f"Media file not available: {media_path} (record: {record.id})")
            skipped += 1
            continue
        output = os.path.join(record_dir, _unique_name(os.path.basename(media_path), used_names))
        try:
            written = strip_and_verify(source, output, report)
        except MediaVerificationError as e:
            if report is not None:
                report.error(_MODULE, f"{e.user_message} (record: {record.id}) -- asset skipped")
            skipped += 1
            continue
        if written is None:
            skipped += 1
            continue
        rel = os.path.relpath(written, public_dir).replace(os.sep, "/")
        kept.append(f"/{rel}")
        processed += 1

    if kept != record.media:
        record = record.model_copy(update={"media": kept})
    return MediaOutcome(record=record, processed=processed, skipped=skipped)


def process_media_all(
    records: Sequence[CanonicalRecord],
    *,
    project_root: str,
    media_dir: str,
    public_dir: str,
    max_workers: int = 4,
    report: Optional[RunReport] = None,
) -> List[MediaOutcome]:
    """
    Records are independent, so assets are processed on a thread pool.
    `map` yields results in input order, which keeps output order canonical.
    """
    if not records:
        return []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="media-privacy") as ex:
        return list(
            ex.map(
                lambda r: process_record_media(r, project_root=project_root, media_dir=media_dir, public_dir=public_dir, report=report),
                records,
            )
        )
