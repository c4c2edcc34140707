import json

import httpx
import pytest
import respx
from httpx import Response

from clusterops.clients.controlplane import ControlPlaneClient
from clusterops.config import Settings
from clusterops.core.errors import MalformedResponseError, NotFoundError, RemoteTransientError
from clusterops.domain.identity import Identity, Kind

BASE = "https://cp.example.com"
CLUSTER = Identity(scope="cluster", kind=Kind.CLUSTER, token="k-1")


@pytest.mark.asyncio
async def test_query_by_name_matches_exact_name():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        route = respx.get(f"{BASE}/cluster/api/ClusterType").mock(
            return_value=Response(
                200,
                json=[{"id": "ct-2", "name": "std-large"}, {"id": "ct-1", "name": "std"}],
            )
        )

        identity = await client.query_by_name("cluster", Kind.CLUSTER_TYPE, "std")

        assert identity == Identity(scope="cluster", kind=Kind.CLUSTER_TYPE, token="ct-1")
        params = route.calls.last.request.url.params
        assert params["fields"] == "id,name"
        assert json.loads(params["query"]) == {"name": "std"}


@pytest.mark.asyncio
async def test_query_by_name_accepts_items_envelope():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        respx.get(f"{BASE}/cluster/api/CloudCredentials").mock(
            return_value=Response(200, json={"items": [{"id": "cred-1", "name": "azure"}]})
        )

        identity = await client.query_by_name("cluster", Kind.CLOUD_CREDENTIALS, "azure")

        assert identity.token == "cred-1"


@pytest.mark.asyncio
async def test_query_by_name_without_match_is_not_found():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        respx.get(f"{BASE}/cluster/api/ClusterType").mock(
            return_value=Response(200, json=[{"id": "ct-2", "name": "std-large"}])
        )

        with pytest.raises(NotFoundError) as excinfo:
            await client.query_by_name("cluster", Kind.CLUSTER_TYPE, "std")

        assert excinfo.value.name == "std"


@pytest.mark.asyncio
async def test_query_by_name_match_without_id_is_malformed():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        respx.get(f"{BASE}/cluster/api/ClusterType").mock(
            return_value=Response(200, json=[{"name": "std"}])
        )

        with pytest.raises(MalformedResponseError):
            await client.query_by_name("cluster", Kind.CLUSTER_TYPE, "std")


@pytest.mark.asyncio
async def test_get_sends_auth_header():
    client = ControlPlaneClient(BASE, "test-token", auth_scheme="ApiKey")

    with respx.mock:
        route = respx.get(f"{BASE}/cluster/api/KubernetesCluster/k-1").mock(
            return_value=Response(200, json={"id": "k-1", "state": "Running"})
        )

        document = await client.get(CLUSTER)

        assert document["state"] == "Running"
        request = route.calls.last.request
        assert request.headers["Authorization"] == "ApiKey test-token"
        assert request.headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_get_404_is_not_found():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        route = respx.get(f"{BASE}/cluster/api/KubernetesCluster/k-1").mock(
            return_value=Response(404)
        )

        with pytest.raises(NotFoundError):
            await client.get(CLUSTER)

        assert route.call_count == 1


@pytest.mark.asyncio
async def test_server_error_is_transient_and_not_retried():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        route = respx.get(f"{BASE}/cluster/api/KubernetesCluster/k-1").mock(
            return_value=Response(503, text="unavailable")
        )

        with pytest.raises(RemoteTransientError) as excinfo:
            await client.get(CLUSTER)

        assert excinfo.value.status_code == 503
        assert route.call_count == 1


@pytest.mark.asyncio
async def test_network_error_is_transient():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        respx.get(f"{BASE}/cluster/api/KubernetesCluster/k-1").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        with pytest.raises(RemoteTransientError) as excinfo:
            await client.get(CLUSTER)

        assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_non_json_body_is_malformed():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        respx.get(f"{BASE}/cluster/api/KubernetesCluster/k-1").mock(
            return_value=Response(200, text="<html>oops</html>")
        )

        with pytest.raises(MalformedResponseError):
            await client.get(CLUSTER)


@pytest.mark.asyncio
async def test_get_relation_path():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        respx.get(f"{BASE}/cluster/api/KubernetesCluster/k-1/status").mock(
            return_value=Response(200, json=[{"message": "quota exceeded"}])
        )

        document = await client.get_relation(CLUSTER, "status")

        assert document == [{"message": "quota exceeded"}]


@pytest.mark.asyncio
async def test_post_from_json_sends_document():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        route = respx.post(f"{BASE}/cluster/api/txn").mock(
            return_value=Response(200, json={"changeId": "c-1"})
        )

        result = await client.post_from_json("cluster", Kind.TXN, {"create": [{"name": "x"}]})

        assert result == {"changeId": "c-1"}
        assert json.loads(route.calls.last.request.content) == {"create": [{"name": "x"}]}


@pytest.mark.asyncio
async def test_put_targets_object_path():
    client = ControlPlaneClient(BASE, "test-token")
    pool = Identity(scope="cluster", kind=Kind.NODE_POOL, token="p-1")

    with respx.mock:
        route = respx.put(f"{BASE}/cluster/api/NodePool/p-1").mock(return_value=Response(200))

        result = await client.put(pool, {"nodeCount": 4})

        assert result == {}
        assert json.loads(route.calls.last.request.content) == {"nodeCount": 4}


@pytest.mark.asyncio
async def test_delete_passes_action_param():
    client = ControlPlaneClient(BASE, "test-token")

    with respx.mock:
        route = respx.delete(f"{BASE}/cluster/api/KubernetesCluster/k-1").mock(
            return_value=Response(204)
        )

        await client.delete(CLUSTER, {"action": "delete"})

        assert route.calls.last.request.url.params["action"] == "delete"


def test_from_settings():
    settings = Settings(api_url=f"{BASE}/", api_token="tok", auth_scheme="Token", http_timeout=5)

    client = ControlPlaneClient.from_settings(settings)

    headers = client._headers()
    assert headers["Authorization"] == "Token tok"
    assert client._base_url == BASE
    assert client._timeout == 5


def test_no_auth_header_without_token():
    assert "Authorization" not in ControlPlaneClient(BASE)._headers()
