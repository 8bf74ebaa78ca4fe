"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from activity_logger.config import Settings
from activity_logger.core.activity.service import ActivityService
from activity_logger.core.activity.store import SQLAlchemyRecordStore


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_activity_service(request: Request) -> ActivityService:
    """Get the activity service attached at application start-up."""
    return request.app.state.activity_service


def get_record_store(request: Request) -> SQLAlchemyRecordStore:
    """Get the application's record store."""
    return request.app.state.record_store


# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_app_settings)]
ActivitySvc = Annotated[ActivityService, Depends(get_activity_service)]
RecordStoreDep = Annotated[SQLAlchemyRecordStore, Depends(get_record_store)]
