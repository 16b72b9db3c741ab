from .gcs import generate_signed_url, get_bucket_name, store_video
from .store import InMemoryJobStore, JobStore, RedisJobStore, create_job_store

__all__ = [
    "JobStore",
    "InMemoryJobStore",
    "RedisJobStore",
    "create_job_store",
    "store_video",
    "generate_signed_url",
    "get_bucket_name",
]
