"""Test device registry operations and snapshot emission."""

from migration_engine.core.models import DeviceCategory, Phase, StatusFlag
from migration_engine.core.placement import PlacementFailure
from migration_engine.core.schemas import DeviceDraft, DeviceUpdate


class TestAddDevice:
    """Test registering devices."""

    def test_add_returns_unique_ids(self, service):
        first = service.add_device(DeviceDraft(code="SW-01"))
        second = service.add_device(DeviceDraft(code="SW-01"))

        assert first != second
        assert len(service.list_devices()) == 2

    def test_new_device_defaults(self, service):
        """Test a new device is unplaced and not ready."""
        device_id = service.add_device(DeviceDraft(name="Core switch"))
        device = service.lookup_device(device_id)

        assert device.category == DeviceCategory.OTHER
        assert device.before is None and device.after is None
        assert not service.is_complete(device)

    def test_add_from_mapping_is_lenient(self, service):
        """Test malformed values are repaired instead of rejected."""
        device_id = service.add_device({
            "category": "storage",
            "code": "NAS-1",
            "ports": "-4",
            "size": "abc",
            "mgmtIp": "10.0.0.5",
            "serial": "   ",
            "unexpected": "ignored",
        })
        device = service.lookup_device(device_id)

        assert device.category == DeviceCategory.STORAGE
        assert device.ports == 0
        assert device.size == 1
        assert device.mgmt_ip == "10.0.0.5"
        assert device.serial is None

    def test_infinite_numbers_repaired(self, service):
        """Test non-finite numbers fall back to defaults instead of failing."""
        device_id = service.add_device({"ports": float("inf"), "size": float("-inf")})
        device = service.lookup_device(device_id)

        assert device.ports == 0
        assert device.size == 1

    def test_unknown_category_becomes_other(self, service):
        device_id = service.add_device({"category": "Toaster"})
        assert service.lookup_device(device_id).category == DeviceCategory.OTHER

    def test_size_clamped_to_capacity(self, service):
        device_id = service.add_device(DeviceDraft(size=80))
        assert service.lookup_device(device_id).size == 42

    def test_add_emits_snapshot(self, service, sink):
        device_id = service.add_device(DeviceDraft(code="SW-01"))

        assert sink.mutations() == ["device.added"]
        assert sink.last.device_id == device_id
        assert sink.last.device_ids() == [device_id]


class TestUpdateDevice:
    """Test merging descriptive fields."""

    def test_partial_update(self, service, add_device):
        device_id = add_device(code="SRV-01", name="App server")

        service.update_device(device_id, DeviceUpdate(name="DB server"))
        device = service.lookup_device(device_id)

        assert device.name == "DB server"
        assert device.code == "SRV-01"

    def test_update_from_mapping(self, service, add_device):
        device_id = add_device()

        service.update_device(device_id, {"ports": "24", "portMapping": "eth0->sw1/1"})
        device = service.lookup_device(device_id)

        assert device.ports == 24
        assert device.port_mapping == "eth0->sw1/1"

    def test_update_keeps_start_and_status(self, service, add_device):
        """Test a descriptive update leaves placement records and flags alone."""
        device_id = add_device(size=2)
        service.place(Phase.BEFORE, device_id, "A1", 10)
        service.set_flag(device_id, StatusFlag.MOUNTED, True)

        result = service.update_device(device_id, {"name": "Renamed"})
        device = service.lookup_device(device_id)

        assert result.ok
        assert (device.before.start, device.before.end) == (10, 11)
        assert device.status.mounted

    def test_resize_rederives_placed_ranges(self, service, add_device):
        """Test a size change keeps every placed range as long as the device."""
        device_id = add_device(size=2)
        service.place(Phase.BEFORE, device_id, "A1", 10)
        service.place(Phase.AFTER, device_id, "B1", 1)

        assert service.update_device(device_id, {"size": 4}).ok
        device = service.lookup_device(device_id)

        assert device.size == 4
        assert (device.before.start, device.before.end) == (10, 13)
        assert (device.after.start, device.after.end) == (1, 4)

    def test_resize_into_neighbour_rejected(self, service, sink, add_device):
        """Test growing into another device's slots rejects the whole update."""
        grower = add_device(size=1, code="SW-A", name="Switch A")
        neighbour = add_device(size=1, code="SW-B", name="Switch B")
        service.place(Phase.BEFORE, grower, "A1", 5)
        service.place(Phase.BEFORE, neighbour, "A1", 6)
        emitted = len(sink.snapshots)

        result = service.update_device(grower, {"size": 2, "name": "Renamed"})
        device = service.lookup_device(grower)

        assert result.failure == PlacementFailure.SLOT_CONFLICT
        assert result.conflicting_device_id == neighbour
        assert device.size == 1
        assert device.name == "Switch A"
        assert (device.before.start, device.before.end) == (5, 5)
        assert len(sink.snapshots) == emitted

    def test_resize_past_rack_top_rejected(self, service, add_device):
        device_id = add_device(size=2)
        service.place(Phase.AFTER, device_id, "B1", 40)

        result = service.update_device(device_id, {"size": 4})

        assert result.failure == PlacementFailure.OUT_OF_BOUNDS
        assert service.lookup_device(device_id).size == 2
        assert service.lookup_device(device_id).after.end == 41

    def test_update_unknown_device_is_noop(self, service, sink):
        result = service.update_device("missing", {"name": "x"})

        assert result.failure == PlacementFailure.DEVICE_NOT_FOUND
        assert service.list_devices() == []
        assert sink.snapshots == []

    def test_update_emits_snapshot(self, service, sink, add_device):
        device_id = add_device()
        service.update_device(device_id, {"brand": "HPE"})

        assert sink.mutations()[-1] == "device.updated"
        assert sink.last.devices[0]["brand"] == "HPE"


class TestDeleteDevice:
    """Test removing devices."""

    def test_delete_frees_slots(self, service, add_device):
        """Test a deleted device's slots are immediately available."""
        first = add_device(size=2)
        second = add_device(size=2)
        assert service.place("before", first, "A1", 10).ok

        service.delete_device(first)

        assert service.lookup_device(first) is None
        assert service.place("before", second, "A1", 10).ok

    def test_delete_unknown_is_noop(self, service, sink, add_device):
        add_device()
        emitted = len(sink.snapshots)

        service.delete_device("missing")

        assert len(service.list_devices()) == 1
        assert len(sink.snapshots) == emitted

    def test_delete_emits_snapshot(self, service, sink, add_device):
        device_id = add_device()
        service.delete_device(device_id)

        assert sink.mutations()[-1] == "device.deleted"
        assert sink.last.devices == ()


class TestLookups:
    """Test read access returns copies."""

    def test_lookup_unknown(self, service):
        assert service.lookup_device("missing") is None

    def test_lookup_returns_copy(self, service, add_device):
        device_id = add_device(name="Original")

        copy = service.lookup_device(device_id)
        copy.name = "Changed"
        copy.status.tested = True

        stored = service.lookup_device(device_id)
        assert stored.name == "Original"
        assert not stored.status.tested

    def test_list_in_registry_order(self, service, add_device):
        ids = [add_device() for _ in range(3)]
        assert [d.device_id for d in service.list_devices()] == ids

    def test_racks(self, service):
        assert [r.rack_id for r in service.list_racks()] == ["A1", "A2", "B1"]
        assert service.lookup_rack("A2").capacity == 42
        assert service.lookup_rack("Z9") is None


class TestSnapshots:
    """Test snapshots are by-value copies of the whole registry."""

    def test_snapshot_not_affected_by_later_mutation(self, service, sink, add_device):
        device_id = add_device(name="First")
        taken = sink.last

        service.update_device(device_id, {"name": "Second"})

        assert taken.devices[0]["name"] == "First"
        assert sink.last.devices[0]["name"] == "Second"

    def test_snapshot_record_shape(self, service, add_device):
        device_id = add_device(size=2, code="SRV-01", name="App", mgmt_ip="10.1.1.1")
        service.place("after", device_id, "B1", 5)

        record = service.snapshot()[0]

        assert record["id"] == device_id
        assert record["category"] == "Server"
        assert record["mgmt_ip"] == "10.1.1.1"
        assert record["before"] is None
        assert record["after"] == {"rack_id": "B1", "start": 5, "end": 6}
        assert record["status"] == {
            "mounted": False, "cabled": False, "powered": False, "tested": False,
        }
