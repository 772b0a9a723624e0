import pytest

from usbhistory import config
from usbhistory.errors import BufferTooSmall, KeyNotFound, Unreachable
from usbhistory.registry import KeyHandle, RegistryAccessor, fullKeyPath

USBSTOR = config.USBSTOR_PATH

# 2011-09-09T00:00:00Z & 2012-01-01T00:00:00Z as FILETIME ticks
TICKS_2011 = 129600000000000000
TICKS_2012 = 129698496000000000


class FakeKey:
	def __init__(self, path, lastWrite=0, values=None, classNameLength=0, openError=None, timestampError=None, enumError=None):
		self.path = path
		self.lastWrite = lastWrite
		self.values = dict(values or {})
		self.classNameLength = classNameLength
		self.openError = openError
		self.timestampError = timestampError
		self.enumError = enumError


# In-memory registry: keys addressed by their path below the hive
class FakeRegistry(RegistryAccessor):

	def __init__(self, unreachableHosts=()):
		self.keys = {}
		self.unreachableHosts = set(unreachableHosts)
		self.opened = 0
		self.closed = 0
		self.bufferSizes = []
		self.released = False

	def add(self, path, **kwargs):
		# parents appear implicitly so enumeration order follows insertion order
		parts = path.split("\\")
		for i in range(1, len(parts)):
			parent = "\\".join(parts[:i])
			if parent not in self.keys:
				self.keys[parent] = FakeKey(parent)
		self.keys[path] = FakeKey(path, **kwargs)
		return self.keys[path]

	def openKey(self, hive, path, host=None):
		full = fullKeyPath(hive, path, host)
		if host in self.unreachableHosts:
			raise Unreachable("\\\\" + host)
		key = self.keys.get(path.strip("\\"))
		if key is None:
			raise KeyNotFound(full)
		if key.openError is not None:
			raise key.openError
		self.opened += 1
		return KeyHandle(full, key)

	def closeKey(self, handle):
		self.closed += 1

	def close(self):
		self.released = True

	def enumerateSubkeyNames(self, handle):
		if handle.key.enumError is not None:
			raise handle.key.enumError
		prefix = handle.key.path + "\\"
		return [p[len(prefix):] for p in self.keys if p.startswith(prefix) and "\\" not in p[len(prefix):]]

	def getValueNames(self, handle):
		return list(handle.key.values)

	def getValueBytes(self, handle, name):
		try:
			value = handle.key.values[name]
		except KeyError:
			raise KeyNotFound(handle.path + "\\" + name)
		if isinstance(value, Exception):
			raise value
		return value

	def getStringProperty(self, handle, name):
		value = handle.key.values.get(name)
		if isinstance(value, Exception):
			raise value
		return value

	def getIntegerProperty(self, handle, name):
		return handle.key.values.get(name)

	def queryLastWriteTime(self, handle, scratchBufferSize):
		self.bufferSizes.append(scratchBufferSize)
		if handle.key.timestampError is not None:
			raise handle.key.timestampError
		if scratchBufferSize <= handle.key.classNameLength:
			raise BufferTooSmall(handle.path, config.ERROR_MORE_DATA)
		return handle.key.lastWrite


@pytest.fixture
def registry():
	return FakeRegistry()


# Two device classes: one with a single unit, one with two units
@pytest.fixture
def usbTree(registry):
	registry.add(USBSTOR + "\\Disk&Ven_SanDisk&Prod_Cruzer&Rev_1.26", lastWrite=TICKS_2011)
	registry.add(USBSTOR + "\\Disk&Ven_SanDisk&Prod_Cruzer&Rev_1.26\\4C530001230812116033&0", lastWrite=TICKS_2012, values={"FriendlyName": "SanDisk Cruzer USB Device"})
	registry.add(USBSTOR + "\\Disk&Ven_Kingston&Prod_DataTraveler&Rev_PMAP", lastWrite=TICKS_2012)
	registry.add(USBSTOR + "\\Disk&Ven_Kingston&Prod_DataTraveler&Rev_PMAP\\001CC0EC3450BB40E71401C9&0", lastWrite=TICKS_2012, values={"FriendlyName": "Kingston DataTraveler USB Device"})
	registry.add(USBSTOR + "\\Disk&Ven_Kingston&Prod_DataTraveler&Rev_PMAP\\7&1b2c3d4e&0", lastWrite=TICKS_2011)
	return registry
