"""
Enrollment - Học khuôn mặt sinh viên từ ảnh mẫu
Builds one reference embedding per roster identity.
"""
from __future__ import annotations

import io
import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np
import requests
from PIL import Image

from logging_config import recognition_logger
from .backend import LabeledEmbedding, RecognitionBackend

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {'.jpg', '.jpeg', '.png'}


class RosterError(ValueError):
    """Raised when the roster definition is invalid."""


@dataclass(frozen=True)
class Identity:
    name: str
    image_ref: str
    student_id: Optional[str] = None

    @property
    def remote_id(self) -> str:
        return self.student_id or self.name


def validate_roster(identities: Iterable[Identity]) -> List[Identity]:
    roster = list(identities)
    seen = set()
    for identity in roster:
        name = (identity.name or '').strip()
        if not name:
            raise RosterError("Roster entry without a name")
        if name == 'unknown':
            raise RosterError("'unknown' is reserved and cannot be used as a student name")
        if name in seen:
            raise RosterError(f"Duplicate student name in roster: {name}")
        seen.add(name)
    return roster


def load_roster(path) -> List[Identity]:
    """Đọc roster từ file JSON: [{"name": ..., "image": ..., "student_id": ...}]"""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise RosterError(f"Cannot read roster file {path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get('students', [])
    if not isinstance(payload, list):
        raise RosterError(f"Roster file {path} must contain a list of students")

    identities = []
    for item in payload:
        if not isinstance(item, dict) or not item.get('name') or not item.get('image'):
            raise RosterError(f"Invalid roster entry: {item!r}")
        student_id = item.get('student_id')
        identities.append(Identity(
            name=str(item['name']).strip(),
            image_ref=str(item['image']),
            student_id=str(student_id) if student_id is not None else None,
        ))
    return validate_roster(identities)


def _parse_image_filename(img_path: Path):
    """Parse filename dạng <ID>_<Name> để lấy student_id và name"""
    filename = img_path.stem
    match = re.match(r'^(\d+)_(.+)$', filename)
    if match:
        return match.group(1), match.group(2).replace('_', ' ').strip()
    return None, filename.replace('_', ' ').strip()


def roster_from_faces_dir(faces_dir, extensions: Optional[Iterable[str]] = None) -> List[Identity]:
    """Duyệt thư mục ảnh mẫu, mỗi file là một sinh viên (thứ tự theo tên file)

    ``extensions`` như ALLOWED_EXTENSIONS ("jpg", ".png"...); mặc định jpg/jpeg/png.
    """
    faces_dir = Path(faces_dir)
    suffixes = IMAGE_SUFFIXES
    if extensions is not None:
        suffixes = {'.' + ext.lower().lstrip('.') for ext in extensions}
    if not faces_dir.exists():
        return []

    identities = []
    for img_path in sorted(faces_dir.iterdir()):
        if not img_path.is_file() or img_path.suffix.lower() not in suffixes:
            continue
        student_id, name = _parse_image_filename(img_path)
        identities.append(Identity(name=name, image_ref=img_path.name, student_id=student_id))
    return validate_roster(identities)


def load_image(image_ref: str, base_dir=None, timeout: float = 15.0) -> np.ndarray:
    """Tải ảnh từ đường dẫn local hoặc URL, trả về mảng RGB"""
    if image_ref.startswith(('http://', 'https://')):
        resp = requests.get(image_ref, timeout=timeout)
        resp.raise_for_status()
        img = Image.open(io.BytesIO(resp.content))
    else:
        # "/faces/a.jpg" và "a.jpg" đều tính từ thư mục ảnh mẫu
        path = Path(image_ref)
        if base_dir is not None:
            path = Path(base_dir) / image_ref.lstrip('/')
        img = Image.open(path)
    return np.array(img.convert('RGB'))


class EnrollmentLoader:
    """Service học embedding tham chiếu cho từng sinh viên trong roster"""

    def __init__(
        self,
        backend: RecognitionBackend,
        image_loader: Optional[Callable[[str], np.ndarray]] = None,
        max_workers: int = 1,
        logger: Optional[logging.Logger] = None,
    ):
        self.backend = backend
        self.image_loader = image_loader or load_image
        self.max_workers = max(1, int(max_workers))
        self.logger = logger or logging.getLogger(__name__)

    def _enroll_one(self, identity: Identity) -> Optional[LabeledEmbedding]:
        try:
            image = self.image_loader(identity.image_ref)
            embedding = self.backend.embed(image)
        except Exception as exc:
            self.logger.error(f"[Enrollment] ❌ Error loading {identity.name}: {exc}")
            return None

        if embedding is None:
            self.logger.warning(f"[Enrollment] ⚠️ No face found for {identity.name}")
            return None

        self.logger.info(f"[Enrollment] ✅ Learned {identity.name}")
        return LabeledEmbedding(identity.name, embedding)

    def enroll(self, roster: Sequence[Identity]) -> List[LabeledEmbedding]:
        """Học tất cả khuôn mặt; lỗi của một sinh viên không làm hỏng cả lượt"""
        roster = list(roster)
        if not roster:
            recognition_logger.log_enrollment(0, 0)
            return []

        workers = min(self.max_workers, len(roster))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='enroll') as pool:
            results = list(pool.map(self._enroll_one, roster))

        learned = [item for item in results if item is not None]
        recognition_logger.log_enrollment(len(learned), len(roster))
        return learned
