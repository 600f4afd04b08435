import pytest
from unittest.mock import MagicMock

from core.config import load_config
from core.models import Environment, Service
from lib.retries import RetryBudget

UPGRADE_URL = "http://rancher.local/v1/projects/1a5/services/1s10/?action=upgrade"
FINISH_URL = "http://rancher.local/v1/projects/1a5/services/1s10/?action=finishupgrade"


@pytest.fixture
def plugin_env():
    return {
        "PLUGIN_URL": "http://rancher.local/v1/projects/1a5",
        "PLUGIN_ACCESS_KEY": "access",
        "PLUGIN_SECRET_KEY": "secret",
        "PLUGIN_SERVICE": "web",
        "PLUGIN_STACK": "prod",
        "PLUGIN_DOCKER_IMAGE": "myapp:v2",
        "PLUGIN_START_FIRST": "true",
        "PLUGIN_CONFIRM": "false",
        "PLUGIN_BATCH_SIZE": "2",
        "PLUGIN_BATCH_INTERVAL": "2s",
        "PLUGIN_TIMEOUT": "1s",
        "PLUGIN_NOTIFY_WEBHOOK": "https://hooks.example.com/T000/B000",
        "PLUGIN_SUCCESS_CHANNEL": "deploys",
        "PLUGIN_BLOCKED_CHANNEL": "alerts",
        "PLUGIN_SUCCESS_EMOJI": "rocket",
        "PLUGIN_BLOCKED_EMOJI": "no_entry",
    }


@pytest.fixture
def config(plugin_env):
    return load_config(plugin_env)


@pytest.fixture
def budget():
    return RetryBudget(total=0.2, interval=0.01, jitter=0.0)


@pytest.fixture
def environments():
    return [Environment(id="1e1", name="prod"), Environment(id="1e2", name="staging")]


def make_service(state="active", actions=None, **overrides):
    fields = dict(
        id="1s10",
        name="web",
        environment_id="1e1",
        state=state,
        actions={"upgrade": UPGRADE_URL} if actions is None else actions,
        launch_config={"imageUuid": "docker:myapp:v1", "environment": {"MODE": "prod"}},
        secondary_launch_configs=[{"name": "sidekick", "imageUuid": "docker:sidekick:v1"}],
    )
    fields.update(overrides)
    return Service(**fields)


@pytest.fixture
def service():
    return make_service()


@pytest.fixture
def client(environments, service):
    mock_client = MagicMock()
    mock_client.list_environments.return_value = environments
    mock_client.list_services.return_value = [
        service,
        make_service(id="1s11", name="worker", actions={}),
        make_service(id="1s20", name="web", environment_id="1e2"),
    ]
    return mock_client
