import random
import time
from pathlib import Path
from typing import List, Optional

from fastapi import UploadFile

from .errors import ClientInputError, PayloadTooLarge, StorageError
from .schemas import StoredImage

REQUIRED_IMAGES = 2
CHUNK_SIZE = 1024 * 1024


def ensure_dirs(uploads_dir: Path) -> None:
    uploads_dir.mkdir(parents=True, exist_ok=True)


def unique_filename(original: str) -> str:
    """
    <epoch ms>-<random>-<original basename>, so two uploads of the same file never collide.
    """
    name = Path(original or "upload").name or "upload"
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}-{name}"


def check_image_count(files: Optional[List[UploadFile]]) -> List[UploadFile]:
    files = files or []
    if len(files) != REQUIRED_IMAGES:
        raise ClientInputError("Exactly 2 images are required for disease detection")
    return files


async def save_upload(file: UploadFile, uploads_dir: Path, max_bytes: int) -> StoredImage:
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise ClientInputError("Only image files are allowed!")

    stored_filename = unique_filename(file.filename)
    image_path = uploads_dir / stored_filename

    size_bytes = 0
    try:
        with image_path.open("wb") as out:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size_bytes += len(chunk)
                if size_bytes > max_bytes:
                    break
                out.write(chunk)
    except OSError as e:
        raise StorageError("Failed to store upload") from e

    if size_bytes > max_bytes:
        image_path.unlink(missing_ok=True)
        raise PayloadTooLarge("File too large")

    return StoredImage(
        original_filename=file.filename or "",
        stored_filename=stored_filename,
        size_bytes=size_bytes,
        content_type=content_type,
    )


async def intake_images(
    files: Optional[List[UploadFile]], uploads_dir: Path, max_bytes: int
) -> List[StoredImage]:
    """
    Validate the count first, then store each file in order.
    A file rejected later leaves earlier ones on disk.
    """
    files = check_image_count(files)
    ensure_dirs(uploads_dir)
    return [await save_upload(f, uploads_dir, max_bytes) for f in files]
