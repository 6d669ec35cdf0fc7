from dataclasses import dataclass

from src.forum_admin.core.services import (
    DbSessionService,
    IpInfoClient,
    JobQueue,
    TemporalClientService,
)


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    job_queue: JobQueue
    ip_info_client: IpInfoClient
    temporal_service: TemporalClientService | None = None
