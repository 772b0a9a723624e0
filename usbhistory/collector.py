# Walks Enum\USBSTOR: device class keys (deviceId) hold one subkey per physical unit (uniqueId)
#
# firstConnected comes from the device class key's last write time, lastConnected from the unit key's.
# Only opening the root is fatal. Anything failing below it is logged, recorded in the record's
# errors, and the walk carries on with the affected fields left empty.

import logging

from . import config
from .errors import RecordError, RegistryError
from .models import USBDeviceRecord
from .timestamp import TimestampProbe

logger = logging.getLogger(__name__)


class USBHistoryCollector:

	def __init__(self, accessor, root=config.USBSTOR_PATH, hive=config.HKLM, host=None, probe=None):
		self.accessor = accessor
		self.root = root.strip("\\")
		self.hive = hive
		self.host = host
		self.probe = probe or TimestampProbe(accessor)

	# Records are yielded in the accessor's enumeration order; stopping early is safe
	def iterRecords(self):
		rootHandle = self.accessor.openKey(self.hive, self.root, self.host)
		try:
			deviceIds = self.accessor.enumerateSubkeyNames(rootHandle)
		finally:
			self.accessor.closeKey(rootHandle)

		for deviceId in deviceIds:
			yield from self.deviceRecords(deviceId)

	def collect(self):
		return list(self.iterRecords())

	# Function to read a key's timestamp, returning (instant or None, RecordError or None)
	def timestamp(self, handle, field):
		try:
			return self.probe.probe(handle).lastWriteTime, None
		except RegistryError as e:
			logger.warning("%s unavailable for %s: %s", field, handle.path, e)
			return None, RecordError(field, e)

	# Function to collect every unit below one device class key
	def deviceRecords(self, deviceId):
		path = self.root + "\\" + deviceId
		try:
			handle = self.accessor.openKey(self.hive, path, self.host)
		except RegistryError as e:
			logger.warning("Skipping device class %s: %s", deviceId, e)
			return

		try:
			try:
				uniqueIds = self.accessor.enumerateSubkeyNames(handle)
			except RegistryError as e:
				logger.warning("Could not enumerate units of %s: %s", handle.path, e)
				return

			firstConnected, firstError = self.timestamp(handle, "firstConnected")
			for uniqueId in uniqueIds:
				yield self.unitRecord(deviceId, uniqueId, firstConnected, firstError)
		finally:
			self.accessor.closeKey(handle)

	# Function to build the record of one physical unit
	def unitRecord(self, deviceId, uniqueId, firstConnected, firstError):
		errors = [firstError] if firstError else []
		path = self.root + "\\" + deviceId + "\\" + uniqueId
		try:
			handle = self.accessor.openKey(self.hive, path, self.host)
		except RegistryError as e:
			logger.warning("Could not open unit key %s: %s", uniqueId, e)
			errors.append(RecordError("lastConnected", e))
			return USBDeviceRecord(deviceId, uniqueId, "", firstConnected, None, errors)

		try:
			try:
				friendlyName = self.accessor.getStringProperty(handle, config.FRIENDLY_NAME)
			except RegistryError as e:
				logger.warning("FriendlyName unavailable for %s: %s", handle.path, e)
				errors.append(RecordError("friendlyName", e))
				friendlyName = None

			lastConnected, lastError = self.timestamp(handle, "lastConnected")
			if lastError:
				errors.append(lastError)
		finally:
			self.accessor.closeKey(handle)

		return USBDeviceRecord(deviceId, uniqueId, friendlyName or "", firstConnected, lastConnected, errors)
