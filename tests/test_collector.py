from datetime import datetime, timezone

import pytest

from usbhistory import config
from usbhistory.collector import USBHistoryCollector
from usbhistory.errors import AccessDenied, KeyNotFound
from usbhistory.models import USBDeviceRecord

SANDISK = "Disk&Ven_SanDisk&Prod_Cruzer&Rev_1.26"
KINGSTON = "Disk&Ven_Kingston&Prod_DataTraveler&Rev_PMAP"
T2011 = datetime(2011, 9, 9, tzinfo=timezone.utc)
T2012 = datetime(2012, 1, 1, tzinfo=timezone.utc)
USBSTOR = config.USBSTOR_PATH


def test_records_pair_units_with_their_class(usbTree):
	records = USBHistoryCollector(usbTree).collect()
	assert len(records) == 3
	assert set(records) == {
		USBDeviceRecord(SANDISK, "4C530001230812116033&0", "SanDisk Cruzer USB Device", T2011, T2012),
		USBDeviceRecord(KINGSTON, "001CC0EC3450BB40E71401C9&0", "Kingston DataTraveler USB Device", T2012, T2012),
		USBDeviceRecord(KINGSTON, "7&1b2c3d4e&0", "", T2012, T2011),
	}
	assert usbTree.opened == usbTree.closed


def test_missing_friendly_name_does_not_abort(usbTree):
	records = {(r.deviceId, r.uniqueId): r for r in USBHistoryCollector(usbTree).collect()}
	record = records[(KINGSTON, "7&1b2c3d4e&0")]
	assert record.friendlyName == ""
	assert record.errors == ()


def test_failed_unit_timestamp_keeps_the_record(usbTree):
	usbTree.keys[USBSTOR + "\\" + KINGSTON + "\\001CC0EC3450BB40E71401C9&0"].timestampError = AccessDenied("unit")
	records = {r.uniqueId: r for r in USBHistoryCollector(usbTree).collect()}
	assert len(records) == 3
	failed = records["001CC0EC3450BB40E71401C9&0"]
	assert failed.lastConnected is None
	assert failed.firstConnected == T2012
	assert failed.friendlyName == "Kingston DataTraveler USB Device"
	[error] = failed.errors
	assert error.field == "lastConnected"
	assert error.kind == "AccessDenied"
	assert str(error) == "lastConnected: AccessDenied: unit"
	assert records["7&1b2c3d4e&0"].lastConnected == T2011
	assert records["4C530001230812116033&0"].lastConnected == T2012


def test_failed_class_timestamp_blanks_first_connected(usbTree):
	usbTree.keys[USBSTOR + "\\" + KINGSTON].timestampError = AccessDenied("class")
	records = USBHistoryCollector(usbTree).collect()
	kingston = [r for r in records if r.deviceId == KINGSTON]
	assert len(kingston) == 2
	assert all(r.firstConnected is None for r in kingston)
	assert all(r.lastConnected is not None for r in kingston)
	sandisk = [r for r in records if r.deviceId == SANDISK][0]
	assert sandisk.firstConnected == T2011


def test_unit_key_that_cannot_be_opened(usbTree):
	usbTree.keys[USBSTOR + "\\" + SANDISK + "\\4C530001230812116033&0"].openError = AccessDenied("unit")
	records = {r.uniqueId: r for r in USBHistoryCollector(usbTree).collect()}
	record = records["4C530001230812116033&0"]
	assert record.friendlyName == ""
	assert record.lastConnected is None
	assert record.firstConnected == T2011
	assert [(e.field, e.kind) for e in record.errors] == [("lastConnected", "AccessDenied")]


def test_unreadable_friendly_name(usbTree):
	usbTree.keys[USBSTOR + "\\" + SANDISK + "\\4C530001230812116033&0"].values["FriendlyName"] = AccessDenied("name")
	records = {r.uniqueId: r for r in USBHistoryCollector(usbTree).collect()}
	record = records["4C530001230812116033&0"]
	assert record.friendlyName == ""
	assert record.lastConnected == T2012
	assert [(e.field, e.kind) for e in record.errors] == [("friendlyName", "AccessDenied")]


def test_class_that_cannot_be_enumerated_is_skipped(usbTree):
	usbTree.keys[USBSTOR + "\\" + KINGSTON].enumError = AccessDenied("class")
	records = USBHistoryCollector(usbTree).collect()
	assert [r.deviceId for r in records] == [SANDISK]
	assert usbTree.opened == usbTree.closed


def test_missing_root_is_fatal(registry):
	with pytest.raises(KeyNotFound) as ei:
		USBHistoryCollector(registry).collect()
	assert ei.value.path == "HKEY_LOCAL_MACHINE\\" + USBSTOR


def test_empty_root(registry):
	registry.add(USBSTOR)
	assert USBHistoryCollector(registry).collect() == []


def test_stopping_early_releases_handles(usbTree):
	records = USBHistoryCollector(usbTree).iterRecords()
	next(records)
	records.close()
	assert usbTree.opened == usbTree.closed


def test_custom_root(registry):
	root = "SYSTEM\\ControlSet002\\Enum\\USBSTOR"
	registry.add(root + "\\Disk&Ven_A\\SERIAL&0", values={"FriendlyName": "A"})
	records = USBHistoryCollector(registry, root).collect()
	assert [(r.deviceId, r.uniqueId, r.friendlyName) for r in records] == [("Disk&Ven_A", "SERIAL&0", "A")]


def test_failed_class_timestamp_is_recorded_on_each_unit(usbTree):
	usbTree.keys[USBSTOR + "\\" + SANDISK].timestampError = AccessDenied("class")
	records = {r.uniqueId: r for r in USBHistoryCollector(usbTree).collect()}
	errors = records["4C530001230812116033&0"].errors
	assert [(e.field, e.kind) for e in errors] == [("firstConnected", "AccessDenied")]
	assert isinstance(errors[0].error, AccessDenied)
