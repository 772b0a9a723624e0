# Registry accessors: the live (local or remote) Windows registry, and offline SYSTEM hive files parsed with regipy
# Both hand out KeyHandle objects so the collector & decoder don't care where the data comes from

import functools
import logging
import os
from collections import namedtuple

from regipy.exceptions import (
	NoRegistrySubkeysException,
	NoRegistryValuesException,
	RegipyException,
	RegistryKeyNotFoundException,
)
from regipy.recovery import apply_transaction_logs
from regipy.registry import RegistryHive
from regipy.utils import calculate_xor32_checksum

from . import config
from .errors import HiveCorruption, KeyNotFound, RegistryError, Unreachable, errorFromCode
from .native import initNativeBinding, queryKeyInfo

logger = logging.getLogger(__name__)

# An opened key: full path (hive included) plus whatever the accessor needs to read it
KeyHandle = namedtuple("KeyHandle", ["path", "key"])


# Function to normalise a hive name (HKLM/HKEY_LOCAL_MACHINE)
def normaliseHive(hive):
	try:
		return config.HIVE_ALIASES[hive.upper()]
	except (KeyError, AttributeError):
		raise KeyNotFound(str(hive), message="Unsupported hive: " + str(hive))


# Function to build the full path of a key, e.g. HKEY_LOCAL_MACHINE\SYSTEM\MountedDevices
def fullKeyPath(hive, path, host=None):
	full = normaliseHive(hive) + "\\" + path.strip("\\")
	if host:
		full = "\\\\" + host + "\\" + full
	return full


# Interface consumed by TimestampProbe, MountedDeviceDecoder & USBHistoryCollector
class RegistryAccessor:

	def openKey(self, hive, path, host=None):
		raise NotImplementedError

	def closeKey(self, handle):
		pass

	def enumerateSubkeyNames(self, handle):
		raise NotImplementedError

	def getValueNames(self, handle):
		raise NotImplementedError

	def getValueBytes(self, handle, name):
		raise NotImplementedError

	# Returns None when the property is absent
	def getStringProperty(self, handle, name):
		raise NotImplementedError

	# Returns None when the property is absent
	def getIntegerProperty(self, handle, name):
		raise NotImplementedError

	# Returns the raw 64-bit FILETIME of the key's last write
	def queryLastWriteTime(self, handle, scratchBufferSize):
		raise NotImplementedError

	# Releases connections the accessor holds; keys are closed through closeKey
	def close(self):
		pass

	def __enter__(self):
		return self

	def __exit__(self, excType, excValue, traceback):
		self.close()


# Function to turn value data of any registry type into the bytes stored in the registry
def valueToBytes(value, valueType=None):
	if value is None:
		return b""
	if isinstance(value, (bytes, bytearray)):
		return bytes(value)
	if isinstance(value, str):
		return value.encode("utf-16le")
	if isinstance(value, int):
		if valueType == config.REG_DWORD_BIG_ENDIAN:
			return value.to_bytes(4, "big")
		if valueType == config.REG_QWORD or value > 0xFFFFFFFF:
			return value.to_bytes(8, "little")
		return value.to_bytes(4, "little")
	if isinstance(value, (list, tuple)):
		# REG_MULTI_SZ: NUL separated strings ending in an empty string
		return ("\0".join(value) + "\0\0").encode("utf-16le")
	return str(value).encode("utf-16le")


# Function to read SYSTEM\Select\Current & turn it into a control set name, e.g. ControlSet001
def resolveControlSet(accessor, hive=config.HKLM, host=None):
	handle = accessor.openKey(hive, config.SELECT_PATH, host)
	try:
		current = accessor.getIntegerProperty(handle, config.CURRENT_CONTROL_SET_VALUE)
	finally:
		accessor.closeKey(handle)
	if current is None:
		raise KeyNotFound(handle.path + "\\" + config.CURRENT_CONTROL_SET_VALUE)
	controlSet = "ControlSet%03d" % current
	logger.info("currentcontrolset identified as %s", controlSet)
	return controlSet


# Function to build the USBSTOR root for a given control set
def usbstorPath(controlSet=config.DEFAULT_CONTROL_SET):
	return "SYSTEM\\" + controlSet + "\\" + config.USBSTOR_SUBPATH


# Live registry through winreg; host=None is the local machine
class LiveRegistry(RegistryAccessor):

	def __init__(self):
		# winreg only exists on Windows
		import winreg
		self.winreg = winreg
		self.queryInfoKey = initNativeBinding()
		self.connections = {}

	# Function to turn an OSError from winreg into the error taxonomy
	def translate(self, exc, path):
		code = getattr(exc, "winerror", None) or exc.errno
		return errorFromCode(code, path)

	def connect(self, hive, host=None):
		target = (hive, host)
		if target not in self.connections:
			remote = "\\\\" + host if host else None
			try:
				self.connections[target] = self.winreg.ConnectRegistry(remote, self.winreg.HKEY_LOCAL_MACHINE)
			except OSError as e:
				err = self.translate(e, remote or hive)
				if host and not isinstance(err, Unreachable):
					err = Unreachable(remote, err.code)
				raise err
		return self.connections[target]

	def openKey(self, hive, path, host=None):
		hive = normaliseHive(hive)
		full = fullKeyPath(hive, path, host)
		root = self.connect(hive, host)
		try:
			key = self.winreg.OpenKey(root, path.strip("\\"), 0, self.winreg.KEY_READ)
		except OSError as e:
			raise self.translate(e, full)
		return KeyHandle(full, key)

	def closeKey(self, handle):
		handle.key.Close()

	def enumerateSubkeyNames(self, handle):
		try:
			count = self.winreg.QueryInfoKey(handle.key)[0]
			return [self.winreg.EnumKey(handle.key, i) for i in range(count)]
		except OSError as e:
			raise self.translate(e, handle.path)

	def getValueNames(self, handle):
		try:
			count = self.winreg.QueryInfoKey(handle.key)[1]
			return [self.winreg.EnumValue(handle.key, i)[0] for i in range(count)]
		except OSError as e:
			raise self.translate(e, handle.path)

	# Returns (value, type), or (None, None) when the value is absent
	def queryValue(self, handle, name):
		try:
			return self.winreg.QueryValueEx(handle.key, name)
		except FileNotFoundError:
			return None, None
		except OSError as e:
			raise self.translate(e, handle.path + "\\" + name)

	def getValueBytes(self, handle, name):
		value, valueType = self.queryValue(handle, name)
		return valueToBytes(value, valueType)

	def getStringProperty(self, handle, name):
		value, valueType = self.queryValue(handle, name)
		return None if value is None else str(value)

	def getIntegerProperty(self, handle, name):
		value, valueType = self.queryValue(handle, name)
		return None if value is None else int(value)

	def queryLastWriteTime(self, handle, scratchBufferSize):
		info = queryKeyInfo(self.queryInfoKey, handle.key.handle, scratchBufferSize, handle.path)
		return info.lastWriteTime

	# Function to close the ConnectRegistry handles, remote ones included
	def close(self):
		connections = self.connections
		self.connections = {}
		for target, root in connections.items():
			try:
				root.Close()
			except OSError as e:
				logger.warning("Could not close registry connection %s: %s", target, e)


# Function to check for dirty Registry Hive
def isDirty(hive):
	name = os.path.basename(hive.name)
	if hive.header.primary_sequence_num != hive.header.secondary_sequence_num:
		logger.info("%s is dirty! Sequence numbers don't match", name)
		return True

	hive._stream.seek(0)
	chksum = calculate_xor32_checksum(hive._stream.read(508))
	if hive.header.checksum != chksum:
		logger.info("%s is dirty! Checksum doesn't match", name)
		return True

	logger.info("%s is clean", name)
	return False


# Function to find the transaction logs (<hive>.LOG1 & <hive>.LOG2) next to a hive
def transactionLogs(hivePath):
	return [log for log in (hivePath + ".LOG1", hivePath + ".LOG2") if os.path.exists(log)]


# Function to replay transaction logs
# Uses regipy apply_transaction_logs(hive_path, primary_log_path, secondary_log_path=None, restored_hive_path=None, verbose=False)
def replayLogs(hivePath):
	logs = transactionLogs(hivePath)
	if not logs:
		logger.warning("Log files not found - dirty hive is being processed: %s", hivePath)
		return RegistryHive(hivePath)

	secondary = logs[1] if len(logs) > 1 else None
	updatedHive, dirtyPages = apply_transaction_logs(hivePath, logs[0], secondary, None, False)
	logger.info("Updated hive created: %s (%d dirty pages recovered)", updatedHive, dirtyPages)
	return RegistryHive(updatedHive)


# Function to open a hive file, replaying its transaction logs when it's dirty
def openHive(hivePath, replay=True):
	if not os.path.isfile(hivePath):
		raise KeyNotFound(hivePath, message="Hive '" + hivePath + "' does not exist")
	try:
		hive = RegistryHive(hivePath)
		if replay and isDirty(hive):
			hive = replayLogs(hivePath)
	except RegipyException as e:
		raise HiveCorruption(hivePath, message="Could not parse hive '" + hivePath + "': " + str(e))
	return hive


# Function (decorator) turning regipy parsing errors inside an OfflineHive read into HiveCorruption
# so a corrupt cell costs one record, not the whole walk
def regipyErrors(read):
	@functools.wraps(read)
	def wrapper(self, handle, *args):
		try:
			return read(self, handle, *args)
		except RegipyException as e:
			raise HiveCorruption(handle.path, message="Corrupt hive data at " + handle.path + ": " + str(e))
	return wrapper


# Offline SYSTEM hive parsed with regipy; paths look like SYSTEM\ControlSet001\Enum\USBSTOR
class OfflineHive(RegistryAccessor):

	def __init__(self, hivePath, replay=True, hive=None):
		self.hivePath = hivePath
		self.hive = hive if hive is not None else openHive(hivePath, replay)

	def openKey(self, hive, path, host=None):
		if host:
			raise Unreachable("\\\\" + host, message="Remote hosts can't be queried through an offline hive")
		full = fullKeyPath(hive, path)
		try:
			key = self.hive.get_key(path.strip("\\"))
		except RegistryKeyNotFoundException:
			raise KeyNotFound(full)
		except RegipyException as e:
			raise HiveCorruption(full, message="Corrupt hive data at " + full + ": " + str(e))
		return KeyHandle(full, key)

	@regipyErrors
	def enumerateSubkeyNames(self, handle):
		try:
			return [subkey.name for subkey in handle.key.iter_subkeys()]
		except NoRegistrySubkeysException:
			return []

	@regipyErrors
	def getValueNames(self, handle):
		return [value.name for value in self.values(handle)]

	def values(self, handle):
		try:
			return list(handle.key.iter_values())
		except NoRegistryValuesException:
			return []

	@regipyErrors
	def getValueBytes(self, handle, name):
		for value in self.values(handle):
			if value.name == name:
				return valueToBytes(value.value)
		raise KeyNotFound(handle.path + "\\" + name)

	@regipyErrors
	def getStringProperty(self, handle, name):
		value = handle.key.get_value(name)
		return None if value is None else str(value)

	@regipyErrors
	def getIntegerProperty(self, handle, name):
		value = handle.key.get_value(name)
		return None if value is None else int(value)

	# nk records carry the timestamp directly, no scratch buffer involved
	@regipyErrors
	def queryLastWriteTime(self, handle, scratchBufferSize):
		return handle.key.header.last_modified


# Function to pick an accessor: an offline hive when a file is given, the live registry otherwise
def openAccessor(hivePath=None, replay=True):
	if hivePath:
		return OfflineHive(hivePath, replay)
	try:
		return LiveRegistry()
	except ImportError:
		raise RegistryError(message="Live registry access needs Windows; pass a SYSTEM hive file instead")
