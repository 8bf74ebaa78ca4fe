"""Wiring of the activity layer into a FastAPI application."""

import structlog
from fastapi import FastAPI

from activity_logger.config import ActivityLoggerConfig
from activity_logger.core.activity.attribution import TokenVerifier, UserAttributionResolver
from activity_logger.core.activity.interceptor import MutationInterceptor
from activity_logger.core.activity.models import ActivityLog
from activity_logger.core.activity.policy import TrackingPolicy
from activity_logger.core.activity.recorder import ActivityRecorder
from activity_logger.core.activity.service import ActivityService
from activity_logger.core.activity.store import SQLAlchemyRecordStore
from activity_logger.core.blueprints import Blueprints
from activity_logger.core.constants import ACTIVITY_ENTITY


log = structlog.get_logger()


class ActivityLoggerHook:
    """Build the activity components and attach them to an application.

    Every component receives its collaborators here; nothing is looked
    up from global state.

    Example:
        hook = ActivityLoggerHook(settings.activity_logger, store)
        hook.initialize(app, blueprints)
    """

    def __init__(
        self,
        config: ActivityLoggerConfig,
        store: SQLAlchemyRecordStore,
        token_verifier: TokenVerifier | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.policy = TrackingPolicy(config.models)
        self.resolver = UserAttributionResolver(token_verifier)
        self.recorder = ActivityRecorder(store, self.policy)
        self.service = ActivityService(self.recorder, store, self.resolver, config)
        self.interceptor = MutationInterceptor(
            store, self.recorder, self.resolver, self.policy, config
        )

    def initialize(self, app: FastAPI, blueprints: Blueprints | None = None) -> None:
        """Register the activity model, expose the service, intercept CRUD.

        Call once all host models are registered and the generic CRUD
        layer has been built.
        """
        self.store.register(ACTIVITY_ENTITY, ActivityLog)
        app.state.activity_service = self.service

        if self.config.include_blueprints:
            self.interceptor.install(blueprints)

        log.info(
            "activity_logger_initialized",
            models=sorted(self.config.models),
            track_data=self.config.track_data,
            intercepting=self.interceptor.installed,
        )
