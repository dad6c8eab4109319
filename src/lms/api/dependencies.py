"""
Shared dependencies for API routes
"""
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from lms.api.auth import get_current_active_user, require_roles
from lms.models.database import get_db
from lms.models.database_models import User, UserRole
from lms.utils.storage import ObjectStorage, get_storage

# Dependency shortcuts
CurrentUser = Annotated[User, Depends(get_current_active_user)]
DBSession = Annotated[Session, Depends(get_db)]
Storage = Annotated[ObjectStorage, Depends(get_storage)]

AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
TeacherUser = Annotated[User, Depends(require_roles(UserRole.TEACHER))]
StudentUser = Annotated[User, Depends(require_roles(UserRole.STUDENT))]
TeacherOrAdmin = Annotated[User, Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN))]
CourseMember = Annotated[User, Depends(require_roles(UserRole.TEACHER, UserRole.STUDENT))]
