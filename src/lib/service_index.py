"""
service_index.py
- Builds the stack name -> service name -> Service lookup used to resolve the deploy target.
- Rancher identifies services by id; pipelines name them by stack and service display name.
"""

from loguru import logger

from core.errors import DeployError, ErrorKind


def build_service_index(environments, services):
    """
    Index services by their environment (stack) name and service name.

    Services without an environment id are skipped. Duplicate names inside one
    stack collapse to the last one listed.

    Args:
        environments (Iterable[Environment]): Snapshot of all stacks.
        services (Iterable[Service]): Snapshot of all services.

    Returns:
        dict[str, dict[str, Service]]: Two-level lookup.

    Raises:
        DeployError: CONSISTENCY if a service references an unknown stack id.
    """
    by_id = {env.id: env for env in environments}
    index = {}

    for service in services:
        if not service.environment_id:
            continue

        env = by_id.get(service.environment_id)
        if env is None:
            raise DeployError(
                ErrorKind.CONSISTENCY,
                f"Service {service.name} ({service.id}) references non-existent stack ID {service.environment_id}",
            )

        stack_services = index.setdefault(env.name, {})
        if service.name in stack_services:
            logger.warning(f"[service_index] Duplicate service name {env.name}/{service.name}, keeping {service.id}")
        stack_services[service.name] = service

    return index


def resolve_service(index, stack, service):
    stack_services = index.get(stack)
    if stack_services is None:
        raise DeployError(ErrorKind.PRECONDITION, f"No stack exists with the specified name: {stack}")

    found = stack_services.get(service)
    if found is None:
        raise DeployError(ErrorKind.PRECONDITION, f"No service exists with the specified name: {stack}/{service}")

    return found
