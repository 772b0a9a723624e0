from collections import namedtuple

from .filetime import isoTime


# Last write time of a registry key
class RegistryTimestamp(namedtuple("RegistryTimestamp", ["keyFullName", "lastWriteTime"])):
	__slots__ = ()


# One \DosDevices\<letter>: value from SYSTEM\MountedDevices
class MountedDeviceEntry(namedtuple("MountedDeviceEntry", ["volumeName", "driveLetter", "rawBytes", "decodedText", "registryPath"])):
	__slots__ = ()

	# Raw data as a list of byte values
	@property
	def decimalData(self):
		return list(self.rawBytes)

	# Hex tokens left after zero bytes are dropped, space separated
	@property
	def hexText(self):
		return " ".join("{0:x}".format(b) for b in self.rawBytes if b != 0)

	def asRow(self):
		return {
			"VolumeName": self.volumeName,
			"DecimalData": " ".join(str(b) for b in self.rawBytes),
			"HexadecimalData": self.hexText,
			"VolumeLetter": self.driveLetter,
			"AsciiData": self.decodedText,
			"RegistryPath": self.registryPath,
		}


MOUNTED_DEVICE_COLUMNS = ["VolumeName", "DecimalData", "HexadecimalData", "VolumeLetter", "AsciiData", "RegistryPath"]


# One physical USB storage unit found under Enum\USBSTOR
# firstConnected/lastConnected are None when the timestamp couldn't be read; errors holds a RecordError per failure
class USBDeviceRecord(namedtuple("USBDeviceRecord", ["deviceId", "uniqueId", "friendlyName", "firstConnected", "lastConnected", "errors"])):
	__slots__ = ()

	def __new__(cls, deviceId, uniqueId, friendlyName="", firstConnected=None, lastConnected=None, errors=()):
		return super().__new__(cls, deviceId, uniqueId, friendlyName or "", firstConnected, lastConnected, tuple(errors))

	# Device serial number, removing all after the first '&' past the second character, including the '&' itself
	@property
	def serialNumber(self):
		amp = self.uniqueId.find("&", 2)
		if amp > 0:
			return self.uniqueId[:amp]
		return self.uniqueId

	def asRow(self):
		return {
			"USBName": self.friendlyName,
			"DeviceID": self.deviceId,
			"UniqueID": self.uniqueId,
			"FirstConnected": isoTime(self.firstConnected),
			"LastConnected": isoTime(self.lastConnected),
		}


USB_HISTORY_COLUMNS = ["USBName", "DeviceID", "UniqueID", "FirstConnected", "LastConnected"]
