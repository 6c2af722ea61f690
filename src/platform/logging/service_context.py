"""
Service context for log lines.

Identifies the emitting instance as `{service}@{env}:{instance}` so that logs
from several replicas of the reservation service can be told apart.
"""

from functools import lru_cache
import os


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'recreation-reservation')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Container hostnames are already unique per replica; fall back to the PID locally
    instance = os.getenv('HOSTNAME', '')[:12] or str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance}'
