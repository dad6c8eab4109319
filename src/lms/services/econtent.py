"""
Per-course e-content: numbered modules holding uploaded slide decks and PDFs
"""
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from lms.errors import BadRequestError, NotFoundError
from lms.models.database_models import Course, EContent, EContentFile, EContentFileType, EContentModule
from lms.models.database_service import get_econtent_by_course, transaction
from lms.services.submissions import UploadedFile, validate_upload
from lms.utils.storage import ObjectStorage, delete_quietly
from lms.utils.timeutils import as_utc, utcnow

ECONTENT_MIME_TYPES = {
    "application/pdf": EContentFileType.PDF,
    "application/vnd.ms-powerpoint": EContentFileType.PPT,
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": EContentFileType.PPTX,
}
ECONTENT_MAX_BYTES = 10 * 1024 * 1024
ECONTENT_FOLDER = "econtent-files"


def file_type_for(content_type: str) -> EContentFileType:
    return ECONTENT_MIME_TYPES.get(content_type, EContentFileType.OTHER)


def _upload_files(storage: ObjectStorage, uploads: List[UploadedFile], now: datetime) -> List[EContentFile]:
    """Upload every file before any row is written; uploaded blobs are removed if a later one fails"""
    for upload in uploads:
        validate_upload(upload, ECONTENT_MIME_TYPES, ECONTENT_MAX_BYTES, label="E-content file")
    files: List[EContentFile] = []
    try:
        for upload in uploads:
            stored = storage.upload(upload.data, ECONTENT_FOLDER, upload.filename, upload.content_type)
            files.append(EContentFile(
                file_type=file_type_for(upload.content_type),
                file_url=stored.url,
                file_key=stored.key,
                file_name=upload.filename,
                upload_date=now,
            ))
    except Exception:
        for f in files:
            delete_quietly(storage, f.file_key)
        raise
    return files


def create_module(db: Session, storage: ObjectStorage, course: Course, module_number: int, module_title: str,
                  link: Optional[str] = None, uploads: List[UploadedFile] = (), now: datetime = None) -> EContentModule:
    if module_number is None or module_number < 1 or not (module_title or "").strip():
        raise BadRequestError("Module number and title are required")
    now = as_utc(now or utcnow())
    files = _upload_files(storage, list(uploads), now)

    try:
        with transaction(db):
            econtent = get_econtent_by_course(db, course.id)
            if econtent is None:
                econtent = EContent(course_id=course.id)
                db.add(econtent)
                db.flush()
            module = EContentModule(
                econtent_id=econtent.id, module_number=module_number, module_title=module_title.strip(), link=link,
            )
            module.files.extend(files)
            db.add(module)
            db.flush()
    except Exception:
        for f in files:
            delete_quietly(storage, f.file_key)
        raise
    logger.info(f"E-content module {module.module_number} created for course {course.id} with {len(files)} files")
    return module


def update_module(db: Session, storage: ObjectStorage, module: EContentModule, module_number: Optional[int] = None,
                  module_title: Optional[str] = None, link: Optional[str] = None,
                  uploads: List[UploadedFile] = (), now: datetime = None) -> EContentModule:
    """Change module fields and append newly uploaded files"""
    now = as_utc(now or utcnow())
    files = _upload_files(storage, list(uploads), now)
    try:
        with transaction(db):
            if module_number is not None:
                if module_number < 1:
                    raise BadRequestError("Module number must be positive")
                module.module_number = module_number
            if module_title is not None:
                if not module_title.strip():
                    raise BadRequestError("Module title cannot be empty")
                module.module_title = module_title.strip()
            if link is not None:
                module.link = link or None
            module.files.extend(files)
    except Exception:
        for f in files:
            delete_quietly(storage, f.file_key)
        raise
    return module


def delete_module(db: Session, module: EContentModule) -> List[str]:
    """Delete a module and its files; returns the blob keys to clean up after commit"""
    keys = [f.file_key for f in module.files if f.file_key]
    with transaction(db):
        db.delete(module)
    logger.info(f"E-content module {module.id} deleted ({len(keys)} files)")
    return keys


def delete_file(db: Session, module: EContentModule, file_id: int) -> str:
    target = next((f for f in module.files if f.id == file_id), None)
    if target is None:
        raise NotFoundError("E-content file not found")
    key = target.file_key
    with transaction(db):
        module.files.remove(target)
    return key


def module_to_dict(module: EContentModule) -> Dict:
    return {
        "id": module.id,
        "module_number": module.module_number,
        "module_title": module.module_title,
        "link": module.link,
        "files": [
            {
                "id": f.id,
                "file_type": f.file_type.value,
                "file_url": f.file_url,
                "file_name": f.file_name,
                "upload_date": as_utc(f.upload_date),
            }
            for f in module.files
        ],
    }


def course_econtent(db: Session, course: Course) -> Dict:
    econtent = get_econtent_by_course(db, course.id)
    return {
        "course_id": course.id,
        "course_title": course.title,
        "modules": [module_to_dict(m) for m in econtent.modules] if econtent else [],
    }
