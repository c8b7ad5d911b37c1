"""Tests for snapshot coercion and change detection."""

import pytest

from swarm_layout.snapshot import (
    TopologySnapshot,
    as_snapshot,
    coerce_attachment,
    coerce_container,
    coerce_host,
    coerce_network,
    coerce_role,
    diff_snapshots,
    snapshots_equal,
)
from swarm_layout.types import (
    ContainerRecord,
    HostRecord,
    HostRole,
    NetworkAttachment,
    NetworkRecord,
)
from swarm_layout.validation import (
    InvalidContainerError,
    InvalidHostError,
    InvalidNetworkError,
)


class Obj:
    """Plain object exposing record attributes."""

    def __init__(self, **kwargs):
        self.__dict__.update(kwargs)


def create_snapshot(*container_ids, role="worker"):
    """One host with the given containers and one overlay network."""
    return as_snapshot(
        {
            "hosts": [
                {
                    "id": "node-1",
                    "role": role,
                    "containers": [
                        {"id": c, "networkAttachments": [{"networkRef": "web"}]}
                        for c in container_ids
                    ],
                }
            ],
            "networks": [{"id": "net-web", "name": "web", "driver": "overlay"}],
        }
    )


class TestCoercion:
    """Tests for turning caller values into records."""

    def test_camel_case_container(self):
        container = coerce_container(
            {
                "id": "c1",
                "serviceName": "web",
                "image": "nginx",
                "status": "running",
                "networkAttachments": [{"networkRef": "net", "ipAddress": "10.0.0.2"}],
            }
        )
        assert container.service_name == "web"
        assert container.network_attachments == (
            NetworkAttachment(network_ref="net", ip_address="10.0.0.2"),
        )

    def test_snake_case_container(self):
        container = coerce_container({"id": "c1", "service_name": "web", "host_id": "h1"})
        assert container.service_name == "web"
        assert container.host_id == "h1"

    def test_embedded_container_gets_host(self):
        host = coerce_host({"id": "h1", "containers": [{"id": "c1"}]})
        assert host.containers[0].host_id == "h1"

    def test_record_passthrough(self):
        container = ContainerRecord(id="c1")
        assert coerce_container(container) is container

    def test_object_input(self):
        host = coerce_host(Obj(id="h1", hostname="box", role="MANAGER", containers=[]))
        assert host.hostname == "box"
        assert host.role is HostRole.MANAGER

    def test_attachment_without_reference(self):
        with pytest.raises(InvalidContainerError, match="c1"):
            coerce_container({"id": "c1", "networkAttachments": [{"driver": "overlay"}]})

    def test_role_defaults_to_worker(self):
        assert coerce_role(None) is HostRole.WORKER

    def test_bad_role(self):
        with pytest.raises(InvalidHostError):
            coerce_role("leader", "h1")

    def test_host_record_role_checked(self):
        with pytest.raises(InvalidHostError):
            coerce_host(HostRecord(id="h1", role="boss"))

    def test_network_info(self):
        network = coerce_network(
            {
                "id": "n1",
                "name": "web",
                "driver": "overlay",
                "networkInfo": {"subnet": "10.0.0.0/24", "gateway": "10.0.0.1"},
            }
        )
        assert network.subnet == "10.0.0.0/24"
        assert network.gateway == "10.0.0.1"

    def test_network_metadata(self):
        network = coerce_network(
            {
                "id": "gw",
                "name": "docker_gwbridge",
                "driver": "bridge",
                "hostId": "h1",
                "ingressLink": True,
                "peers": ["h1", "h2"],
            }
        )
        assert network.host_id == "h1"
        assert network.ingress_link
        assert network.peers == ("h1", "h2")

    def test_network_missing_name(self):
        with pytest.raises(InvalidNetworkError, match="name"):
            coerce_network({"id": "n1", "driver": "overlay"})

    def test_network_record_checked(self):
        with pytest.raises(InvalidNetworkError):
            coerce_network(NetworkRecord(id="n1", name="web", driver=""))

    def test_network_record_without_id(self):
        with pytest.raises(InvalidNetworkError, match="id"):
            coerce_network(NetworkRecord(id="", name="web", driver="overlay"))

    def test_container_record_without_id(self):
        with pytest.raises(InvalidContainerError, match="id"):
            coerce_container(ContainerRecord(id=""))

    def test_attachment_record_without_reference(self):
        with pytest.raises(InvalidContainerError, match="c1"):
            coerce_attachment(NetworkAttachment(network_ref=""), "c1")

    def test_container_record_attachments_checked(self):
        """Attachments of a ContainerRecord are checked like mapping input."""
        container = ContainerRecord(id="c1", network_attachments=(NetworkAttachment(""),))
        with pytest.raises(InvalidContainerError, match="network_ref"):
            coerce_container(container)

    def test_attachment_record_passthrough(self):
        attachment = NetworkAttachment(network_ref="web")
        assert coerce_attachment(attachment) is attachment


class TestGrouping:
    """Tests for merging flat containers into hosts."""

    def test_flat_after_embedded(self):
        snapshot = TopologySnapshot.from_records(
            hosts=[{"id": "h1", "containers": [{"id": "c1"}]}],
            containers=[{"id": "c2", "hostId": "h1"}],
        )
        (host,) = snapshot.grouped_hosts()
        assert [c.id for c in host.containers] == ["c1", "c2"]

    def test_no_flat_containers(self):
        snapshot = TopologySnapshot.from_records(hosts=[{"id": "h1"}])
        assert snapshot.grouped_hosts() is snapshot.hosts

    def test_missing_host_id(self):
        snapshot = TopologySnapshot.from_records(hosts=[{"id": "h1"}], containers=[{"id": "c"}])
        with pytest.raises(InvalidContainerError):
            snapshot.grouped_hosts()

    def test_is_empty(self):
        assert TopologySnapshot().is_empty
        assert not TopologySnapshot.from_records(hosts=[{"id": "h1"}]).is_empty


class TestChangeDetection:
    """Tests for comparing snapshots."""

    def test_identical(self):
        assert snapshots_equal(create_snapshot("a", "b"), create_snapshot("a", "b"))

    def test_container_order_ignored(self):
        assert snapshots_equal(create_snapshot("a", "b"), create_snapshot("b", "a"))

    def test_added_container(self):
        diff = diff_snapshots(create_snapshot("a"), create_snapshot("a", "b"))
        assert diff.changed_hosts == ("node-1",)
        assert not snapshots_equal(create_snapshot("a"), create_snapshot("a", "b"))

    def test_role_change(self):
        diff = diff_snapshots(create_snapshot("a"), create_snapshot("a", role="manager"))
        assert diff.changed_hosts == ("node-1",)

    def test_flat_and_embedded_equal(self):
        embedded = create_snapshot("a")
        flat = as_snapshot(
            {
                "hosts": [{"id": "node-1"}],
                "networks": [{"id": "net-web", "name": "web", "driver": "overlay"}],
                "containers": [
                    {"id": "a", "hostId": "node-1", "networkAttachments": [{"networkRef": "web"}]}
                ],
            }
        )
        assert snapshots_equal(embedded, flat)

    def test_network_changes(self):
        old = create_snapshot("a")
        new = TopologySnapshot(
            hosts=old.hosts,
            networks=(NetworkRecord(id="net-db", name="db", driver="overlay"),),
        )
        diff = diff_snapshots(old, new)
        assert diff.added_networks == ("net-db",)
        assert diff.removed_networks == ("net-web",)
        assert diff.added_hosts == () and diff.removed_hosts == ()
