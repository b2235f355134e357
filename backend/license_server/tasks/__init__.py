"""Background tasks and job scheduler."""
from license_server.tasks.scheduler import (
    get_scheduler,
    start_scheduler,
    stop_scheduler,
    list_jobs,
)
from license_server.tasks.session_cleanup import client_session_cleanup_job

__all__ = [
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
    "list_jobs",
    "client_session_cleanup_job",
]
