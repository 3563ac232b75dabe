"""
Service context for log lines.

Several engine processes share the same Kvrocks and PostgreSQL; each log line carries
`<service>@<env>:<instance>` so sweeps and settlements can be traced back to a process.
"""

from functools import lru_cache
import os


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'fulfillment-engine')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Containers expose a short hostname, local runs use the pid
    instance = os.getenv('HOSTNAME', '') if deploy_env != 'local_dev' else ''

    return f'{service_name}@{deploy_env}:{instance[:12] or os.getpid()}'
