"""
Wires the client, storage, processor, service and scheduler from config.
"""

from dataclasses import dataclass

from .api.base import BookingClient
from .api.client_factory import load_client_from_config
from .database import create_session_factory, init_database
from .jobs.availability import AvailabilityEvaluator
from .jobs.repository import JobRepository
from .jobs.service import BookingService
from .jobs.state_machine import BookingProcessor
from .scheduler import Scheduler


@dataclass
class App:
    client: BookingClient
    evaluator: AvailabilityEvaluator
    repository: JobRepository
    service: BookingService
    scheduler: Scheduler


def create_app(config: dict, client: BookingClient = None) -> App:
    session_factory = create_session_factory(config["database_url"])
    init_database(session_factory)

    client = client or load_client_from_config(config)
    evaluator = AvailabilityEvaluator(client)
    repository = JobRepository(session_factory)
    processor = BookingProcessor(
        client,
        repository,
        evaluator=evaluator,
        max_failed_attempts=config["max_failed_attempts"],
        timezone=config["respage"]["timezone"],
    )
    service = BookingService(repository, processor)

    scheduler_config = config["scheduler"]
    scheduler = Scheduler(
        service.process_active_jobs,
        interval_minutes=scheduler_config["interval_minutes"],
        health_interval_minutes=scheduler_config["health_interval_minutes"],
    )

    return App(
        client=client,
        evaluator=evaluator,
        repository=repository,
        service=service,
        scheduler=scheduler,
    )
