# Decodes SYSTEM\MountedDevices values into drive letter mappings
#
# The ASCII rendering follows the historical report format byte-for-byte:
# every zero byte is dropped before the hex tokens are turned back into characters,
# so UTF-16 text collapses to ASCII but binary fields separated by zeros run together.
# Reports are compared against older output, so this data loss is kept on purpose.

import logging
import re

from . import config
from .errors import MalformedValueName, RegistryError
from .models import MountedDeviceEntry
from .registry import fullKeyPath

logger = logging.getLogger(__name__)

DOS_DEVICE_NAME = re.compile(r"\\DosDevices\\[A-Za-z]:")


def isDosDeviceName(name):
	return bool(DOS_DEVICE_NAME.fullmatch(name or ""))


# Function to get the drive letter from a value name, e.g. \DosDevices\E: -> E:
def driveLetterFromValueName(name):
	if not isDosDeviceName(name):
		raise MalformedValueName(str(name))
	return name.split("\\")[2]


# Function to turn raw value data into text, dropping every zero byte
def decode(rawBytes):
	hexText = " ".join("{0:x}".format(b) for b in rawBytes if b != 0).strip()
	if not hexText:
		return ""
	return "".join(chr(int(token, 16)) for token in hexText.split(" "))


# Function to build entries from the MountedDevices property set (value name -> raw bytes)
# Values that aren't \DosDevices\<letter>: (volume GUIDs etc.) are left out
def decodeMountedDevices(properties, registryPath):
	entries = []
	for name, raw in properties.items():
		if not isDosDeviceName(name):
			continue
		raw = bytes(raw)
		entries.append(MountedDeviceEntry(name, driveLetterFromValueName(name), raw, decode(raw), registryPath))
	return entries


class MountedDeviceDecoder:

	def __init__(self, accessor, path=config.MOUNTED_DEVICES_PATH, hive=config.HKLM, host=None):
		self.accessor = accessor
		self.path = path
		self.hive = hive
		self.host = host

	@property
	def registryPath(self):
		return fullKeyPath(self.hive, self.path, self.host)

	# Function to read every value of the MountedDevices key
	# Failing to open the key is fatal; a single unreadable value is logged & skipped
	def readProperties(self):
		handle = self.accessor.openKey(self.hive, self.path, self.host)
		properties = {}
		try:
			for name in self.accessor.getValueNames(handle):
				try:
					properties[name] = self.accessor.getValueBytes(handle, name)
				except RegistryError as e:
					logger.warning("Could not read %s\\%s: %s", handle.path, name, e)
		finally:
			self.accessor.closeKey(handle)
		return properties

	def entries(self):
		return decodeMountedDevices(self.readProperties(), self.registryPath)
