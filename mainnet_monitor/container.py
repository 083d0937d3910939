"""
Dependency injection container for the mainnet monitor
"""

from dependency_injector import containers, providers

from .managers.endpoint_manager import EndpointManager
from .managers.state_manager import StateManager
from .services.alert_service import AlertService
from .services.logging_service import LoggingService
from .services.monitoring_service import MonitoringService
from .services.submission_service import SubmissionService


class Container(containers.DeclarativeContainer):
    """Main DI container; every provider is a process-wide singleton"""

    # Configuration - will be overridden with actual Config object
    config = providers.Object(None)

    logging_service = providers.Singleton(LoggingService)

    state_manager = providers.Singleton(StateManager, config=config)

    endpoint_manager = providers.Singleton(EndpointManager, config=config)

    alert_service = providers.Singleton(
        AlertService,
        config=config,
        state_manager=state_manager,
        logging_service=logging_service,
    )

    submission_service = providers.Singleton(
        SubmissionService,
        config=config,
        state_manager=state_manager,
        endpoint_manager=endpoint_manager,
        alert_service=alert_service,
        logging_service=logging_service,
    )

    monitoring_service = providers.Singleton(
        MonitoringService,
        config=config,
        state_manager=state_manager,
        endpoint_manager=endpoint_manager,
        alert_service=alert_service,
        logging_service=logging_service,
    )
