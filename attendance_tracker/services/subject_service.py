"""Subject management: faculty-owned subjects and their class/section assignments."""
import logging
from typing import List

from attendance_tracker.models.subject import Subject
from attendance_tracker.services.repository import AttendanceRepository
from attendance_tracker.utils.errors import AuthorizationError, ConflictError, NotFoundError
from attendance_tracker.utils.validators import Actor, SubjectRequest

logger = logging.getLogger(__name__)


class SubjectService:
    """Service for subject CRUD.

    Deleting a subject only clears ``is_active``; its sessions and records
    keep pointing at it.
    """

    def __init__(self, repository: AttendanceRepository):
        self.repository = repository

    def list_subjects(self, actor: Actor, include_inactive: bool = False) -> List[Subject]:
        """Faculty see their own subjects, students the ones taught to their class."""
        if actor.is_faculty:
            return self.repository.faculty_subjects(actor.id, include_inactive)
        if actor.is_student:
            return [
                subject for subject in self.repository.active_subjects()
                if subject.is_assigned_to(actor.class_name, actor.section)
            ]
        return self.repository.active_subjects()

    def get_subject(self, actor: Actor, subject_id: int) -> Subject:
        subject = self.repository.get_subject(subject_id)
        if subject is None:
            raise NotFoundError('Subject not found')

        if actor.is_faculty and subject.faculty_id != actor.id:
            raise AuthorizationError('Not authorized to access this subject')
        if actor.is_student and (not subject.is_active
                                 or not subject.is_assigned_to(actor.class_name, actor.section)):
            raise AuthorizationError('Not authorized to access this subject')

        return subject

    def create_subject(self, actor: Actor, request: SubjectRequest) -> Subject:
        if not actor.is_faculty:
            raise AuthorizationError('Only faculty can create subjects')

        if self.repository.find_subject_by_code(request.code) is not None:
            raise ConflictError(f'Subject code {request.code} already exists')

        subject = Subject(
            code=request.code,
            name=request.name,
            faculty_id=actor.id,
            classes=request.classes,
            is_active=True
        )
        self.repository.add_subject(subject)
        self.repository.commit()

        logger.info('Subject %s (%s) created by faculty %s', subject.id, subject.code, actor.id)
        return subject

    def update_subject(self, actor: Actor, subject_id: int, request: SubjectRequest) -> Subject:
        subject = self._owned_subject(actor, subject_id)

        if request.code is not None and request.code != subject.code:
            if self.repository.find_subject_by_code(request.code) is not None:
                raise ConflictError(f'Subject code {request.code} already exists')
            subject.code = request.code
        if request.name is not None:
            subject.name = request.name
        if request.classes is not None:
            subject.classes = request.classes

        self.repository.commit()
        logger.info('Subject %s updated by faculty %s', subject.id, actor.id)
        return subject

    def delete_subject(self, actor: Actor, subject_id: int) -> Subject:
        subject = self._owned_subject(actor, subject_id)
        subject.is_active = False
        self.repository.commit()

        logger.info('Subject %s deactivated by faculty %s', subject.id, actor.id)
        return subject

    def _owned_subject(self, actor: Actor, subject_id: int) -> Subject:
        subject = self.repository.get_subject(subject_id)
        if subject is None or not subject.is_active:
            raise NotFoundError('Subject not found')
        if subject.faculty_id != actor.id:
            raise AuthorizationError('Not authorized to modify this subject')
        return subject
