import logging
import os
import uuid

from fastapi import HTTPException, UploadFile


logger = logging.getLogger(__name__)

DUTY_SLIP_DIR = "duty-slips"
ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "pdf", "webp"}


def file_extension(file: UploadFile) -> str:
    name = file.filename or ""
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.filename}",
        )
    return ext


def save_file(file: UploadFile, upload_dir: str, subdir: str = DUTY_SLIP_DIR) -> str:
    """Store an upload under ``upload_dir/subdir`` and return its path relative to ``upload_dir``."""
    ext = file_extension(file)

    target_dir = os.path.join(upload_dir, subdir)
    os.makedirs(target_dir, exist_ok=True)

    filename = f"{uuid.uuid4()}.{ext}"
    file_path = os.path.join(target_dir, filename)

    with open(file_path, "wb") as f:
        f.write(file.file.read())

    logger.info("Saved upload %s as %s", file.filename, file_path)

    return f"{subdir}/{filename}"


def save_files(files: list[UploadFile], upload_dir: str, subdir: str = DUTY_SLIP_DIR) -> list[str]:
    # reject the whole batch before anything is written
    for file in files:
        file_extension(file)

    return [save_file(file, upload_dir, subdir) for file in files]
