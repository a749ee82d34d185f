"""
Local-disk storage for candidate uploads (CV, cover letter, profile picture).

Locators are POSIX paths relative to `UPLOAD_DIR`, e.g.
`cvs/1729331000123-9f2c4e1ab03d-resume.pdf`. Every stored file gets a new
name (epoch millis + random hex + sanitized original name) and is opened with
exclusive-create, so concurrent uploads never overwrite each other.

Profile pictures are replaced by a square JPEG derivative; if Pillow cannot
decode the upload the original bytes are kept instead.
"""
from dataclasses import dataclass
import io
import logging
import mimetypes
from pathlib import Path
import time
from uuid import uuid4

from fastapi import UploadFile
from PIL import Image, ImageOps

from .. import config
from ..utils.error_handlers import DependencyFailure, FileUploadError, NotFoundError, get_error_message
from ..utils.validation import sanitize_filename

logger = logging.getLogger(__name__)

CV = "cv"
COVER_LETTER = "cover_letter"
PROFILE_PICTURE = "profile_picture"

_CATEGORY_DIRS = {
    CV: "cvs",
    COVER_LETTER: "cover_letters",
    PROFILE_PICTURE: "profile_pictures",
}

_CHUNK_BYTES = 1024 * 1024  # 1MB


@dataclass
class StoredAsset:
    locator: str
    content_type: str
    size_bytes: int
    derived: bool = False


def _upload_root() -> Path:
    return Path(config.UPLOAD_DIR)


def _unique_name(original_filename: str, *, suffix: str | None = None) -> str:
    name = sanitize_filename(Path(original_filename or "upload").name)
    if suffix:
        name = f"{Path(name).stem or 'image'}{suffix}"
    return f"{int(time.time() * 1000)}-{uuid4().hex[:12]}-{name}"


def content_type_for(locator: str) -> str:
    guessed, _ = mimetypes.guess_type(locator)
    return guessed or "application/octet-stream"


async def read_upload(file: UploadFile, *, max_bytes: int | None = None) -> bytes:
    """Read an UploadFile in chunks, enforcing the per-file size limit."""
    limit = max_bytes if max_bytes is not None else config.MAX_UPLOAD_BYTES
    buf = io.BytesIO()
    size = 0
    try:
        while True:
            chunk = await file.read(_CHUNK_BYTES)
            if not chunk:
                break
            size += len(chunk)
            if size > limit:
                raise FileUploadError(
                    get_error_message("file_too_large"),
                    status_code=413,
                    details={"filename": file.filename, "max_bytes": limit},
                )
            buf.write(chunk)
    finally:
        await file.close()
    return buf.getvalue()


def make_profile_derivative(data: bytes) -> bytes:
    """Center-crop to a square, resize and re-encode as JPEG."""
    size = config.PROFILE_PICTURE_SIZE
    with Image.open(io.BytesIO(data)) as img:
        img = ImageOps.exif_transpose(img)
        img = img.convert("RGB")
        thumb = ImageOps.fit(img, (size, size), method=Image.Resampling.LANCZOS)
        out = io.BytesIO()
        thumb.save(out, format="JPEG", quality=config.PROFILE_PICTURE_QUALITY, optimize=True)
    return out.getvalue()


def _write_new(rel_path: Path, data: bytes) -> None:
    dest = _upload_root() / rel_path
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with open(dest, "xb") as out:
            out.write(data)
    except OSError as e:
        try:
            if dest.exists():
                dest.unlink()
        except OSError:
            pass
        logger.error("File save error for %s: %s", rel_path, e)
        raise DependencyFailure(get_error_message("file_processing_failed")) from e


def store(data: bytes, *, original_filename: str, category: str, content_type: str | None = None) -> StoredAsset:
    """Persist an uploaded file and return its locator."""
    if category not in _CATEGORY_DIRS:
        raise ValueError(f"Unknown asset category: {category}")
    base = Path(_CATEGORY_DIRS[category])

    if category == PROFILE_PICTURE:
        try:
            derived = make_profile_derivative(data)
        except Exception as e:
            logger.warning("Profile picture derivative failed for %r, keeping original: %s", original_filename, e)
        else:
            rel_path = base / _unique_name(original_filename, suffix=".jpg")
            _write_new(rel_path, derived)
            return StoredAsset(
                locator=rel_path.as_posix(),
                content_type="image/jpeg",
                size_bytes=len(derived),
                derived=True,
            )

    rel_path = base / _unique_name(original_filename)
    _write_new(rel_path, data)
    return StoredAsset(
        locator=rel_path.as_posix(),
        content_type=content_type or content_type_for(rel_path.name),
        size_bytes=len(data),
    )


def resolve(locator: str | None) -> Path:
    """Absolute path of a stored asset; NotFoundError if it escapes the root or is gone."""
    if not locator:
        raise NotFoundError(get_error_message("not_found"))
    root = _upload_root().resolve()
    path = (root / locator).resolve()
    if root not in path.parents or not path.is_file():
        logger.warning("Asset missing on server: %s", locator)
        raise NotFoundError("File no longer available on server", details={"locator": locator})
    return path


def read(locator: str | None) -> bytes:
    return resolve(locator).read_bytes()


def delete(locator: str | None) -> bool:
    """Best-effort removal; returns False when nothing was deleted."""
    if not locator:
        return False
    try:
        path = resolve(locator)
    except NotFoundError:
        return False
    try:
        path.unlink()
        return True
    except OSError as e:
        logger.warning("Failed to delete asset %s: %s", locator, e)
        return False
